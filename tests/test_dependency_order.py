import pytest

from dependency_order import (
    build_dependents_map,
    compare_records,
    count_forward_references,
    order_records,
)
from models import LegacyCourseRecord


def _rec(code, prerequisites=""):
    return LegacyCourseRecord(code=code, prerequisites=prerequisites)


@pytest.fixture
def chain():
    """MT01 → MT02 → MT03 (each needs the previous one)."""
    return {
        "A": _rec("MT01"),
        "B": _rec("MT02", "MT01"),
        "C": _rec("MT03", "MT02"),
    }


class TestCompareRecords:
    def test_prerequisite_first(self, chain):
        assert compare_records(chain["A"], chain["B"]) == -1
        assert compare_records(chain["B"], chain["A"]) == 1

    def test_unrelated_pair_is_tie(self, chain):
        assert compare_records(chain["A"], chain["C"]) == 0

    def test_partial_code_is_not_a_mention(self):
        assert compare_records(_rec("MT03"), _rec("MT04", "MT031")) == 0


class TestOrderRecords:
    def test_reverse_chain_is_fixed(self, chain):
        ordered = [r.code for r in order_records([chain["C"], chain["B"], chain["A"]])]
        assert ordered.index("MT01") < ordered.index("MT02") < ordered.index("MT03")

    def test_stable_for_unrelated_records(self):
        records = [_rec("NF16"), _rec("LO02"), _rec("MT01"), _rec("GE01")]
        assert order_records(records) == records

    def test_direct_pair_moves_prerequisite_up(self):
        records = [_rec("IF02", "Avoir validé IF01 ou équivalent"), _rec("IF01"), _rec("NF16")]
        ordered = [r.code for r in order_records(records)]
        assert ordered.index("IF01") < ordered.index("IF02")

    def test_cycle_does_not_raise(self):
        # A→B→C→A: no valid order exists; any permutation is acceptable
        records = [_rec("AA01", "CC01"), _rec("BB01", "AA01"), _rec("CC01", "BB01")]
        ordered = order_records(records)
        assert sorted(r.code for r in ordered) == ["AA01", "BB01", "CC01"]

    def test_input_not_mutated(self, chain):
        records = [chain["C"], chain["B"], chain["A"]]
        order_records(records)
        assert [r.code for r in records] == ["MT03", "MT02", "MT01"]

    def test_empty(self):
        assert order_records([]) == []


class TestDependentsMap:
    def test_direct_dependents(self, chain):
        dependents = build_dependents_map(list(chain.values()))
        assert dependents["MT01"] == ["MT02"]
        assert dependents["MT02"] == ["MT03"]
        assert "MT03" not in dependents

    def test_forward_references_counted(self, chain):
        assert count_forward_references([chain["C"], chain["B"], chain["A"]]) == 2
        assert count_forward_references([chain["A"], chain["B"], chain["C"]]) == 0
