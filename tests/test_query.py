import pytest

from marktguru.query import QueryBuildError, build_query, quote


def test_build_query_builds_a_structured_query():
    """All part kinds combine in a fixed order."""
    result = build_query(
        terms=["milch"],
        phrases=["frische milch"],
        wildcards=["bio*"],
        ors=["soja", "hafer"],
        groups=["(milch OR sahne)"],
    )
    assert result.query == 'milch "frische milch" bio* (soja OR hafer) ((milch OR sahne))'
    assert result.warnings == []


def test_wildcard_with_whitespace_is_quoted_with_warning():
    """Wildcards with spaces are quoted and warned about."""
    result = build_query(wildcards=["bio milch"])
    assert result.query == '"bio milch"'
    assert len(result.warnings) == 1


def test_empty_input_raises():
    """No parts is an error."""
    with pytest.raises(QueryBuildError, match="No query parts provided"):
        build_query()


def test_blank_values_are_skipped():
    """Whitespace-only values don't count as parts."""
    with pytest.raises(QueryBuildError):
        build_query(terms=["  "], phrases=[""], ors=[" "], groups=["\t"])


def test_terms_with_whitespace_are_quoted():
    """Multi-word terms become phrases."""
    assert build_query(terms=["  erdnuss snips "]).query == '"erdnuss snips"'
    assert build_query(ors=["kellys", "erdnuss snips"]).query == '(kellys OR "erdnuss snips")'


def test_quote_escapes_quotes_and_backslashes():
    """Quotes and backslashes are escaped."""
    assert quote('say "hi" \\ bye') == '"say \\"hi\\" \\\\ bye"'
