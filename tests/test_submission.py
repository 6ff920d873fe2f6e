import pytest

from submission import SubmissionPayload, ValidationFailure, split_full_name, validate_submission


def required(**overrides) -> dict:
    payload = {"full_name": "Jane Q Public", "email": "jane@example.com", "budget": "5k", "website": "jane.example"}
    payload.update(overrides)
    return payload


class TestSplitFullName:
    @pytest.mark.parametrize(
        "full_name,expected",
        [
            ("Jane Q Public", ("Jane", "Q Public")),
            ("Madonna", ("Madonna", "")),
            ("  Jan   van  der Berg ", ("Jan", "van der Berg")),
            ("Anna\tde\nVries", ("Anna", "de Vries")),
            ("", ("", "")),
        ],
    )
    def test_split(self, full_name, expected):
        assert split_full_name(full_name) == expected

    def test_payload_properties(self):
        submission = SubmissionPayload(**required())

        assert submission.first_name == "Jane"
        assert submission.last_name == "Q Public"


class TestValidateSubmission:
    def test_valid(self):
        result = validate_submission(required(email="  jane@example.com  "))

        assert isinstance(result, SubmissionPayload)
        assert result.email == "jane@example.com"

    @pytest.mark.parametrize("payload", [[], "text", 42, None])
    def test_non_object_body(self, payload):
        result = validate_submission(payload)

        assert isinstance(result, ValidationFailure)
        assert result.error == "Missing required fields"

    def test_reports_missing_fields(self):
        result = validate_submission(required(budget=" ", website=""))

        assert result == ValidationFailure("Missing required fields", ("budget", "website"))

    def test_numbers_are_coerced(self):
        result = validate_submission(required(budget=5000))

        assert result.budget == "5000"

    @pytest.mark.parametrize("value", [0, False])
    def test_falsy_required_value_is_missing(self, value):
        result = validate_submission(required(full_name=value))

        assert result == ValidationFailure("Missing required fields", ("full_name",))

    def test_wrong_type_is_rejected(self):
        result = validate_submission(required(email={"address": "jane@example.com"}))

        assert isinstance(result, ValidationFailure)
        assert result.fields == ("email",)

    def test_unknown_fields_ignored(self):
        result = validate_submission(required(honeypot="x"))

        assert isinstance(result, SubmissionPayload)


class TestLanguage:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "nl"),
            ("", "nl"),
            ("   ", "nl"),
            ("EN ", "en"),
            (" De", "de"),
            ("fr", "fr"),
        ],
    )
    def test_normalized(self, value, expected):
        payload = required()
        if value is not None:
            payload["language"] = value

        assert validate_submission(payload).language == expected

    def test_whitespace_only_uses_default_rather_than_empty_tag(self):
        assert validate_submission(required(language=" \t ")).language == "nl"


class TestTracking:
    @pytest.mark.parametrize("value", [42, 3.5, {"x": 1}, ["a", "b"], True])
    def test_non_string_values_pass_through(self, value):
        result = validate_submission(required(utm_source=value, page_path=value))

        assert isinstance(result, SubmissionPayload)
        assert result.utm_source == value
        assert result.page_path == value

    @pytest.mark.parametrize("value", [0, False, None, ""])
    def test_falsy_is_none(self, value):
        assert validate_submission(required(utm_medium=value)).utm_medium is None

    def test_absent_is_none(self):
        result = validate_submission(required())

        assert result.utm_source is None
        assert result.utm_medium is None
        assert result.utm_campaign is None
        assert result.page_path is None

    def test_passed_through_untrimmed(self):
        result = validate_submission(required(utm_campaign=" Spring Sale ", page_path="/nl/cashback"))

        assert result.utm_campaign == " Spring Sale "
        assert result.page_path == "/nl/cashback"

    def test_empty_string_is_none(self):
        assert validate_submission(required(utm_source="")).utm_source is None

    def test_profile_properties(self):
        result = validate_submission(required(language="EN", utm_source="google"))

        assert result.profile_properties("cashback.sandstone.nl") == {
            "budget": "5k",
            "website": "jane.example",
            "source": "cashback.sandstone.nl",
            "language": "en",
            "page_path": None,
            "utm_source": "google",
            "utm_medium": None,
            "utm_campaign": None,
        }
