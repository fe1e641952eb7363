from prereq_text import has_prerequisites, mentioned_codes, mentions_code


class TestMentionsCode:
    def test_exact(self):
        assert mentions_code("MT03", "MT03")

    def test_in_list(self):
        assert mentions_code("MT03, MT04", "MT03")
        assert mentions_code("MT03, MT04", "MT04")

    def test_longer_code_is_not_a_match(self):
        assert not mentions_code("MT031", "MT03")

    def test_prefix_letters_are_not_a_match(self):
        assert not mentions_code("AMT03", "MT03")

    def test_inside_sentence(self):
        assert mentions_code("Il est conseillé d'avoir suivi LO21 (ou équivalent).", "LO21")

    def test_regex_characters_are_escaped(self):
        assert not mentions_code("MT03", "MT.3")

    def test_empty_code_never_matches(self):
        assert not mentions_code("MT03", "")

    def test_none_text(self):
        assert not mentions_code(None, "MT03")


class TestHasPrerequisites:
    def test_none_values(self):
        for value in (None, "", "  ", "Aucun", "none", "-"):
            assert not has_prerequisites(value)

    def test_real_text(self):
        assert has_prerequisites("MT01")


class TestMentionedCodes:
    def test_order_and_dedup(self):
        assert mentioned_codes("MT04 puis MT03", ["MT03", "MT04", "MT03", "MT05"]) == ["MT03", "MT04"]

    def test_no_text(self):
        assert mentioned_codes("aucun", ["MT03"]) == []
