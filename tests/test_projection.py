"""Tests for the field-selection parser and its application to records."""

from app.core.projection import apply_selection, build_selection


def test_missing_or_empty_fields_select_only_id():
    assert build_selection(None) == {"id": True}
    assert build_selection("") == {"id": True}


def test_flat_and_nested_paths():
    assert build_selection("firstName,metadata.phone") == {
        "id": True,
        "firstName": True,
        "metadata": {"phone": True},
    }


def test_shared_prefixes_merge_into_one_node():
    selection = build_selection("metadata.phone, metadata.address")
    assert selection["metadata"] == {"phone": True, "address": True}


def test_whitespace_and_empty_tokens_are_ignored():
    assert build_selection("  firstName ,, lastName ,") == {
        "id": True,
        "firstName": True,
        "lastName": True,
    }


def test_deep_paths_nest_recursively():
    assert build_selection("a.b.c,a.b.d") == {"id": True, "a": {"b": {"c": True, "d": True}}}


def test_whole_object_wins_over_sub_paths_in_either_order():
    assert build_selection("metadata,metadata.phone")["metadata"] is True
    assert build_selection("metadata.phone,metadata")["metadata"] is True


def test_excluded_fields_are_dropped():
    selection = build_selection("password,email", exclude={"password"})
    assert selection == {"id": True, "email": True}
    assert build_selection("password", exclude={"password"}) == {"id": True}


def test_apply_selection_prunes_nested_values():
    document = {
        "id": "u1",
        "firstName": "John",
        "email": "john@x.com",
        "metadata": {"phone": "555", "address": "Main St", "age": 30},
    }
    selection = build_selection("firstName,metadata.phone")
    assert apply_selection(document, selection) == {
        "id": "u1",
        "firstName": "John",
        "metadata": {"phone": "555"},
    }


def test_apply_selection_skips_unknown_fields_and_keeps_null_parents():
    document = {"id": "u1", "metadata": None, "firstName": "John"}
    selection = build_selection("nickname,metadata.phone,firstName.initial")
    assert apply_selection(document, selection) == {"id": "u1", "metadata": None}
