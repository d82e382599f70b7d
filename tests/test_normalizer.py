from nl_address.utils.normalizer import (
    is_valid_postalcode,
    normalise_number,
    normalise_postalcode,
    normalise_value,
    query_signature,
    suggestion_signature,
)


def test_normalise_value_collapses_whitespace_and_case():
    assert normalise_value("  Main   Street ") == "main street"
    assert normalise_value(None) == ""
    assert normalise_value("\tOld\ncity ") == "old city"


def test_normalise_postalcode_strips_all_whitespace():
    assert normalise_postalcode(" 1234 ab ") == "1234AB"
    assert normalise_postalcode("") == ""
    assert normalise_postalcode(None) == ""


def test_normalise_number_only_trims():
    assert normalise_number("  10a ") == "10a"
    assert normalise_number(None) == ""


def test_postalcode_shape():
    assert is_valid_postalcode("1234AB")
    assert not is_valid_postalcode("12AB")
    assert not is_valid_postalcode("1234A")
    assert not is_valid_postalcode("1234ABC")
    assert not is_valid_postalcode("ABCD12")
    assert not is_valid_postalcode("")


def test_query_signature_ignores_incidental_formatting():
    assert query_signature("1234 ab", " 10 ") == "1234AB|10"
    assert query_signature("1234AB", "10") == query_signature(" 1234ab", "10 ")


def test_suggestion_signature_is_order_independent():
    first = suggestion_signature([("city", "Oldcity", "Example"), ("street", "Old", "Mainstreet")])
    second = suggestion_signature([("street", " old ", "MAINSTREET"), ("city", "oldcity", "example")])
    assert first == second
    assert first == "city:oldcity->example|street:old->mainstreet"


def test_suggestion_signature_changes_with_values():
    assert suggestion_signature([("city", "Oldcity", "Example")]) != suggestion_signature(
        [("city", "Othercity", "Example")]
    )
