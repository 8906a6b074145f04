"""
Credential resolution tests.

Covers:
1. API key sanitization
2. Explicit vs ambient key precedence
3. Vertex AI (delegated) selection and its fallbacks
"""

import pytest

from core.errors import MissingCredentialsError, MissingLocationError
from services.video_generation.credentials import (
    DelegatedCredential,
    DelegatedSettings,
    DirectKeyCredential,
    resolve_credential,
    sanitize_key,
)


def no_ambient():
    return None


class TestSanitizeKey:
    """Keys pasted from .env files often carry quotes and whitespace."""

    def test_strips_whitespace_and_double_quotes(self):
        assert sanitize_key('  "AIzaSyExample"  ') == "AIzaSyExample"

    def test_strips_single_quotes(self):
        assert sanitize_key("'AIzaSyExample'") == "AIzaSyExample"

    def test_whitespace_inside_quotes_is_trimmed(self):
        assert sanitize_key('\t" AIzaSyExample "\n') == "AIzaSyExample"

    def test_mismatched_quotes_are_kept(self):
        assert sanitize_key("\"AIzaSyExample'") == "\"AIzaSyExample'"

    def test_only_one_layer_removed(self):
        assert sanitize_key("\"'key'\"") == "'key'"

    def test_empty_values(self):
        assert sanitize_key(None) == ""
        assert sanitize_key("   ") == ""
        assert sanitize_key('""') == ""


class TestDirectKey:
    def test_explicit_key_wins_over_ambient(self):
        credential = resolve_credential(api_key="explicit", ambient=lambda: "ambient")
        assert credential == DirectKeyCredential(api_key="explicit")

    def test_blank_explicit_key_falls_back_to_ambient(self):
        credential = resolve_credential(api_key="   ", ambient=lambda: '"ambient-key"')
        assert credential == DirectKeyCredential(api_key="ambient-key")

    def test_missing_everything_raises(self):
        with pytest.raises(MissingCredentialsError) as exc_info:
            resolve_credential(api_key=None, ambient=no_ambient)

        error = exc_info.value
        assert "API Key" in str(error)
        assert error.requires_settings
        assert error.error_code == "MISSING_CREDENTIALS"

    def test_key_not_leaked_in_repr(self):
        assert "secret" not in repr(DirectKeyCredential(api_key="secret"))


class TestDelegated:
    def test_complete_settings_use_vertex(self):
        credential = resolve_credential(
            delegated=DelegatedSettings(project_id="proj", access_token=" ya29.token "),
            ambient=no_ambient,
        )
        assert credential == DelegatedCredential(
            project_id="proj", location="us-central1", access_token="ya29.token"
        )

    def test_delegated_preferred_over_api_key(self):
        credential = resolve_credential(
            api_key="key",
            delegated=DelegatedSettings(project_id="proj", location="europe-west4", access_token="tok"),
        )
        assert isinstance(credential, DelegatedCredential)
        assert credential.location == "europe-west4"

    def test_empty_location_raises_before_any_call(self):
        with pytest.raises(MissingLocationError) as exc_info:
            resolve_credential(
                api_key="key",
                delegated=DelegatedSettings(project_id="proj", location="  ", access_token="tok"),
            )
        assert "Location" in str(exc_info.value)
        assert exc_info.value.requires_settings

    def test_partial_settings_fall_back_to_api_key(self):
        credential = resolve_credential(
            api_key="key",
            delegated=DelegatedSettings(project_id="proj", access_token=""),
        )
        assert credential == DirectKeyCredential(api_key="key")

    def test_partial_settings_without_key_raise_missing_credentials(self):
        with pytest.raises(MissingCredentialsError):
            resolve_credential(
                delegated=DelegatedSettings(project_id="", access_token="tok"),
                ambient=no_ambient,
            )
