from osint_investigator.core.state import SearchParameters
from osint_investigator.search import QueryGenerator, format_phone, query_params_from_search
from osint_investigator.search.query_generator import QueryTemplate


def test_format_phone():
    assert format_phone("555-123-4567") == "(555)123-4567"
    assert format_phone("+1 (555) 123 4567") == "(555)123-4567"
    assert format_phone("12345") == "12345"


def test_query_params_from_search():
    params = SearchParameters(
        full_name="Jane Q Public",
        address="123 Main St, Miami, FL 33101",
        email="jq@example.com",
        phone="+1 555 123 4567",
        username="@jqp",
        keywords="nurse, miami",
    )
    assert query_params_from_search(params) == {
        "first_name": "Jane",
        "last_name": "Public",
        "middle_name": "Q",
        "house_number": "123",
        "street": "Main St",
        "city": "Miami",
        "state": "FL",
        "zip": "33101",
        "email": "jq@example.com",
        "email_username": "jq",
        "phone": "(555)123-4567",
        "username": "jqp",
        "keyword": "nurse",
    }


def test_queries_ordered_by_priority_then_value():
    queries = QueryGenerator().generate(SearchParameters(full_name="Jane Doe", email="jdoe@example.com"))

    assert queries[0].query == '"Jane Doe" "jdoe@example.com"'
    assert queries[0].priority == 3
    assert queries[0].total_value == 12740
    assert [query.priority for query in queries[:4]] == [3, 5, 25, 45]
    keys = [(query.priority, -query.total_value) for query in queries]
    assert keys == sorted(keys)

    same_priority = [query.query for query in queries if query.priority == 120]
    assert same_priority == ['"Jane Doe"', '"jdoe@"']


def test_top_n_is_honoured():
    queries = QueryGenerator().generate(SearchParameters(full_name="Jane Doe", email="jdoe@example.com"), top_n=3)
    assert len(queries) == 3


def test_zero_weight_parameters_still_count_as_one():
    queries = QueryGenerator().generate(SearchParameters(full_name="Jane Doe", keywords="nurse"))
    keyword_queries = [query for query in queries if query.query == '"Jane Doe" nurse']
    assert len(keyword_queries) == 1
    assert keyword_queries[0].priority == 80
    assert keyword_queries[0].total_value == 2592


def test_duplicate_queries_keep_the_best_ranked_copy():
    queries = QueryGenerator().generate(SearchParameters(full_name="Jane Doe", phone="555-123-4567"))
    texts = [query.query for query in queries]
    assert len(texts) == len(set(texts))
    phone_only = [query for query in queries if query.query == '"(555)123-4567"']
    assert [query.priority for query in phone_only] == [110]


def test_templates_with_missing_placeholders_are_skipped():
    generator = QueryGenerator(
        templates=(QueryTemplate('"{first_name} {employer}"', 1, 100), QueryTemplate("{first_name}", 2, 100)),
    )
    queries = generator.generate_from_values({"first_name": "Jane"})
    assert [query.query for query in queries] == ["Jane"]
    assert queries[0].total_value == 10
