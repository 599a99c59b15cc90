import pytest

from apiharness.framework.fluent_assertions import expect_response
from apiharness.framework.response_snapshot import ResponseSnapshot
from apiharness.framework.response_validator import ResponseAssertionError, SchemaError


POST = ResponseSnapshot(
    status=200,
    data={"id": 1, "title": "x", "author": {"name": "Leanne"}, "tags": ["a", "b"]},
    headers={"Content-Type": "application/json; charset=utf-8", "X-Powered-By": "Express"},
    response_time_ms=120,
)


def test_chain_returns_same_instance():
    assertions = expect_response(POST)

    result = assertions.to_have_status(200).and_().to_have_property("id")

    assert result is assertions
    assert assertions.to_have_body() is assertions
    assert assertions.and_() is assertions


def test_missing_property_names_property():
    with pytest.raises(ResponseAssertionError, match="missing") as exc_info:
        expect_response(POST).to_have_property("missing")

    assert exc_info.value.expected == "missing"
    assert isinstance(exc_info.value, AssertionError)


def test_status_mismatch_names_expected_and_actual():
    with pytest.raises(ResponseAssertionError, match="Expected status 201, but got 200"):
        expect_response(POST).to_have_status(201)


def test_failure_aborts_the_rest_of_the_chain():
    checked = []
    assertions = expect_response(POST)

    with pytest.raises(ResponseAssertionError):
        assertions.to_have_status(500)
        checked.append("after")

    assert checked == []


def test_status_range_is_inclusive():
    expect_response(POST).to_have_status_in_range(200, 299).to_have_status_in_range(200, 200)

    with pytest.raises(ResponseAssertionError, match="between 201-299"):
        expect_response(POST).to_have_status_in_range(201, 299)


@pytest.mark.parametrize("data", [None, "", [], ()])
def test_empty_body_values(data):
    snapshot = ResponseSnapshot(status=204, data=data)
    expect_response(snapshot).to_have_empty_body()


@pytest.mark.parametrize("data", [{}, 0, "text", [1]])
def test_non_empty_body_values(data):
    with pytest.raises(ResponseAssertionError):
        expect_response(ResponseSnapshot(status=200, data=data)).to_have_empty_body()


def test_to_have_body_rejects_none_only():
    expect_response(ResponseSnapshot(status=200, data="")).to_have_body()
    expect_response(ResponseSnapshot(status=200, data=0)).to_have_body()

    with pytest.raises(ResponseAssertionError):
        expect_response(ResponseSnapshot(status=204, data=None)).to_have_body()


def test_to_have_properties_reports_first_missing_name():
    with pytest.raises(ResponseAssertionError) as exc_info:
        expect_response(POST).to_have_properties(["id", "userId", "body"])

    assert "'userId'" in str(exc_info.value)
    assert "'body'" not in str(exc_info.value)


def test_to_have_property_on_array_body_fails():
    snapshot = ResponseSnapshot(status=200, data=[{"id": 1}])
    with pytest.raises(ResponseAssertionError, match="body is array"):
        expect_response(snapshot).to_have_property("id")


def test_match_schema_is_shallow():
    # Primitive type names are not checked, only presence
    expect_response(POST).to_match_schema({"id": "string", "title": "number"})
    # Nested schema only requires an object at that key
    expect_response(POST).to_match_schema({"author": {"missing_inside": "string"}})


def test_match_schema_requires_keys_and_nested_objects():
    with pytest.raises(ResponseAssertionError, match="'body'"):
        expect_response(POST).to_match_schema({"id": "number", "body": "string"})

    with pytest.raises(ResponseAssertionError, match="'tags' to be object, but got array"):
        expect_response(POST).to_match_schema({"tags": {"first": "string"}})


def test_match_schema_rejects_invalid_schema():
    with pytest.raises(SchemaError):
        expect_response(POST).to_match_schema({"id": "uuid"})


def test_array_and_object_checks():
    listing = ResponseSnapshot(status=200, data=[{"id": 1}, {"id": 2}])

    expect_response(listing).to_be_array().to_have_length(2)
    expect_response(POST).to_be_object()

    with pytest.raises(ResponseAssertionError, match="to be array, but got object"):
        expect_response(POST).to_be_array()
    with pytest.raises(ResponseAssertionError, match="to be object, but got array"):
        expect_response(listing).to_be_object()


def test_length_checks():
    listing = ResponseSnapshot(status=200, data=list(range(100)))
    expect_response(listing).to_have_length(100)

    with pytest.raises(ResponseAssertionError, match="length 10, but got 100"):
        expect_response(listing).to_have_length(10)
    with pytest.raises(ResponseAssertionError, match="object has no length"):
        expect_response(POST).to_have_length(4)


def test_header_lookup_is_case_insensitive():
    expect_response(POST).to_have_header("content-type").to_have_header("X-POWERED-BY", "Express")

    with pytest.raises(ResponseAssertionError, match="'x-missing'"):
        expect_response(POST).to_have_header("X-Missing")
    with pytest.raises(ResponseAssertionError, match="to equal 'Koa', but got 'Express'"):
        expect_response(POST).to_have_header("x-powered-by", "Koa")


def test_to_contain_is_partial_and_deep():
    expect_response(POST).to_contain({"id": 1}).to_contain({"author": {"name": "Leanne"}})

    with pytest.raises(ResponseAssertionError):
        expect_response(POST).to_contain({"author": {}})
    with pytest.raises(ResponseAssertionError):
        expect_response(POST).to_contain({"id": 2})


def test_to_contain_on_array_body_matches_member():
    listing = ResponseSnapshot(status=200, data=[{"id": 1}, {"id": 2}])
    expect_response(listing).to_contain({"id": 2})

    with pytest.raises(ResponseAssertionError):
        expect_response(listing).to_contain({"id": 3})


def test_to_equal_is_deep_and_type_strict():
    expect_response(POST).to_equal(
        {"id": 1, "title": "x", "author": {"name": "Leanne"}, "tags": ["a", "b"]}
    )

    with pytest.raises(ResponseAssertionError):
        expect_response(POST).to_equal({"id": 1, "title": "x"})

    flag = ResponseSnapshot(status=200, data={"done": True})
    with pytest.raises(ResponseAssertionError):
        expect_response(flag).to_equal({"done": 1})


def test_respond_within_uses_timing():
    expect_response(POST).to_respond_within(500)

    with pytest.raises(ResponseAssertionError, match="within 100ms, but it took 120ms"):
        expect_response(POST).to_respond_within(100)
    with pytest.raises(ResponseAssertionError):
        expect_response(POST).to_respond_within(120)


def test_respond_within_without_timing_is_skipped():
    untimed = ResponseSnapshot(status=200, data={})
    assertions = expect_response(untimed)

    assert assertions.to_respond_within(0) is assertions


def test_unwrap_returns_snapshot_unchanged():
    assertions = expect_response(POST).to_have_status(200).to_contain({"id": 1})

    assert assertions.unwrap() is POST
    assert POST.data["id"] == 1
