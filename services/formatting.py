"""Display strings derived from account records."""

UNKNOWN_NAME = "Unknown User"
UNKNOWN_LOCATION = "Unknown Location"


def _clean(value):
    return " ".join(str(value or "").split())


def full_name(first_name="", middle_initial="", last_name=""):
    """'Juan D. Cruz'. Missing parts are skipped, whitespace is collapsed."""
    middle = _clean(middle_initial)
    parts = [_clean(first_name), f"{middle}." if middle else "", _clean(last_name)]
    return " ".join(p for p in parts if p)


def full_address(house_number="", street="", barangay="", city_municipality="", province=""):
    """
    '12 Rizal St, San Roque, Marikina, Metro Manila'.

    House number and street share the first segment; empty segments are
    dropped so the result never has doubled or dangling commas.
    """
    first = " ".join(p for p in (_clean(house_number), _clean(street)) if p)
    segments = [first, _clean(barangay), _clean(city_municipality), _clean(province)]
    return ", ".join(s for s in segments if s)


def account_name(account):
    return (
        full_name(account.firstName, account.middleInitial, account.lastName)
        or _clean(account.name)
        or UNKNOWN_NAME
    )


def account_location(account):
    return full_address(
        account.houseNumber,
        account.street,
        account.barangay,
        account.cityMunicipality,
        account.province,
    ) or UNKNOWN_LOCATION
