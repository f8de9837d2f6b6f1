"""Tests for secrets/prompts.py module."""

from unittest.mock import patch

import click
import pytest
from questionary import Separator

from kubeseal_sync.manifests.records import SecretRecord
from kubeseal_sync.models import Environment, SecretRef
from kubeseal_sync.secrets.prompts import (
    build_secret_choices,
    prompt_environment,
    prompt_secret_keys,
    prompt_secret_selection,
)

from conftest import secret_document, selected_keys


def make_secret(name: str, namespace: str = "applications", **data: str) -> SecretRecord:
    return SecretRecord.model_validate(
        {**secret_document(name, namespace, stringData=data), "path": f"/kubernetes/{namespace}/{name}.yaml"}
    )


@pytest.fixture
def secrets():
    return [
        make_secret("argocd-secret", "argocd", ADMIN_PASSWORD="x"),
        make_secret("graphql-mongo-secret", MONGODB_USERNAME="u", MONGODB_PASSWORD="p"),
    ]


class TestPromptEnvironment:
    """Tests for environment selection."""

    def test_returns_environment(self):
        """Test the answer is converted to an Environment."""
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = "staging"

            assert prompt_environment() == Environment.STAGING

    def test_cancel_aborts(self):
        """Test cancelling raises click.Abort."""
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = None

            with pytest.raises(click.Abort):
                prompt_environment()


class TestBuildSecretChoices:
    """Tests for checkbox choices."""

    def test_namespace_headers(self, secrets):
        """Test each namespace gets a separator, applications first."""
        choices = build_secret_choices(secrets)

        assert isinstance(choices[0], Separator)
        assert choices[0].title == "Namespace ==> applications"
        assert choices[1].value == SecretRef("graphql-mongo-secret", "applications")
        assert isinstance(choices[2], Separator)
        assert choices[2].title == "Namespace ==> argocd"


class TestPromptSecretSelection:
    """Tests for the two-stage selection prompt."""

    def test_all_picked_selects_every_key(self, secrets):
        """Test picking every secret skips the key prompt."""
        with patch("questionary.checkbox") as mock_checkbox:
            mock_checkbox.return_value.unsafe_ask.return_value = [s.ref for s in secrets]

            selection = prompt_secret_selection(secrets)

            mock_checkbox.assert_called_once()
            assert selected_keys(selection)[SecretRef("graphql-mongo-secret", "applications")] == frozenset(
                {"MONGODB_USERNAME", "MONGODB_PASSWORD"}
            )
            assert len(selection) == 2

    def test_subset_prompts_for_keys(self, secrets):
        """Test picking some secrets asks for their keys."""
        with patch("questionary.checkbox") as mock_checkbox:
            mock_checkbox.return_value.unsafe_ask.side_effect = [
                [SecretRef("graphql-mongo-secret", "applications")],
                ["MONGODB_PASSWORD"],
            ]

            selection = prompt_secret_selection(secrets)

            assert mock_checkbox.call_count == 2
            assert [e.ref for e in selection] == [SecretRef("graphql-mongo-secret", "applications")]
            assert selected_keys(selection)[SecretRef("graphql-mongo-secret", "applications")] == frozenset(
                {"MONGODB_PASSWORD"}
            )

    def test_no_keys_picked_drops_secret(self, secrets):
        """Test a secret with no keys chosen is left out."""
        with patch("questionary.checkbox") as mock_checkbox:
            mock_checkbox.return_value.unsafe_ask.side_effect = [[SecretRef("argocd-secret", "argocd")], []]

            assert not prompt_secret_selection(secrets)

    def test_requires_one_secret(self, secrets):
        """Test the first prompt validates a non-empty answer."""
        with patch("questionary.checkbox") as mock_checkbox:
            mock_checkbox.return_value.unsafe_ask.return_value = [s.ref for s in secrets]

            prompt_secret_selection(secrets)

            validate = mock_checkbox.call_args.kwargs["validate"]
            assert validate([]) == "You must choose at least one secret."
            assert validate(["x"]) is True

    def test_no_secrets(self):
        """Test nothing is asked when there is nothing to pick."""
        with patch("questionary.checkbox") as mock_checkbox:
            assert not prompt_secret_selection([])
            mock_checkbox.assert_not_called()

    def test_key_prompt_lists_sorted_keys(self, secrets):
        """Test the key prompt offers the Secret's keys."""
        with patch("questionary.checkbox") as mock_checkbox:
            mock_checkbox.return_value.unsafe_ask.return_value = ["MONGODB_USERNAME"]

            assert prompt_secret_keys(secrets[1]) == ["MONGODB_USERNAME"]
            assert mock_checkbox.call_args.kwargs["choices"] == ["MONGODB_PASSWORD", "MONGODB_USERNAME"]
