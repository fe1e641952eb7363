"""Fixed reference data created before the legacy rows are migrated."""

CREDIT_CATEGORIES = [
    ("CS", "Connaissances scientifiques"),
    ("TM", "Techniques et méthodes"),
    ("EC", "Expression et communication"),
    ("ME", "Management de l'entreprise"),
    ("HT", "Humanité et technologie"),
    ("ST", "Stage"),
    ("HP", "Hors profil"),
    ("MASTER", "Master"),
    ("OTHER", "Autre"),
]
FALLBACK_CREDIT_CATEGORY = "OTHER"

# legacy category → credit category code, when it is not just the upper-cased value
LEGACY_CATEGORY_ALIASES = {"ct": "HT"}

_TCBR = ("TCBR", "Tronc commun de branche")

# branch code → (branch name, [(option code, option name), ...])
BRANCHES = {
    "TCBR": ("TCBR", [("TCBR_TC", "TCBR")]),
    "A2I": ("Automatique et Informatique Industrielle", [
        ("TCBR_A2I", "TCBR"),
        ("LIBRE", "Filière LIBRE A2I"),
        ("SPI", "Systèmes de Production Intelligents"),
        ("TEI", "Technologie Embarquée et Interopérabilité"),
    ]),
    "GI": ("Génie Industriel", [
        _TCBR,
        ("LET", "Logistique Externe et Transport"),
        ("LIP", "Logistique Interne et Production"),
        ("RAMS", "Reliability, Availability, Maintenance and Safety"),
    ]),
    "GM": ("Génie Mécanique", [
        _TCBR,
        ("CEISME", "Conception Et Industrialisation des Systèmes Mécaniques, en lien avec l'Environnement"),
        ("MDPI", "Management Digital des Produits et Infrastructures"),
        ("SNM", "Simulation Numérique en Mécanique"),
    ]),
    "ISI": ("Informatique et Systèmes d'Information", [
        _TCBR,
        ("ATM", "Accompagnement de la transformation numérique"),
        ("IPL", "Innovation par le logiciel"),
        ("VDC", "Valorisation des données et des connaissances"),
    ]),
    "MTE": ("Matériaux : Technologie et Economie", [
        _TCBR,
        ("EME", "Energie, Matériaux et Environnement"),
        ("AUTO", "Technologie et Commerce des Matériaux et des Composants"),
        ("TQM", "Transformation et Qualité des Matériaux"),
    ]),
    "MM": ("Matériaux et Mécanique", [_TCBR]),
    "RT": ("Réseaux et Télécommunications", [
        _TCBR,
        ("CSR", "Convergence Services et Réseaux"),
        ("SSC", "Sécurité des Systèmes et des Communications"),
        ("TMOC", "Technologies Mobiles et Objets Connectés"),
    ]),
    "SN": ("Systèmes Numériques", [_TCBR]),
}


def credit_category_code(legacy_category) -> str | None:
    """
    Map a legacy `etu_uvs.category` value to a credit category code.

    Returns None for values that match no known category.
    """
    raw = str(legacy_category or "").strip()
    if not raw:
        return None
    code = LEGACY_CATEGORY_ALIASES.get(raw.lower(), raw.upper())
    known = {c for c, _ in CREDIT_CATEGORIES}
    return code if code in known else None


ADDRESS_PRIVACY_LEVELS = ("ALL_PRIVATE", "CITY_PRIVATE", "ADDRESS_PRIVATE", "ALL_PUBLIC")


def address_privacy_level(country_public: bool, city_public: bool, street_public: bool) -> str:
    """
    Fold the three legacy address visibility flags into one level.

    The first hidden part decides: a hidden country hides everything, a hidden
    city hides city and street, a hidden street hides the street only.
    """
    if not country_public:
        return "ALL_PRIVATE"
    if not city_public:
        return "CITY_PRIVATE"
    if not street_public:
        return "ADDRESS_PRIVATE"
    return "ALL_PUBLIC"
