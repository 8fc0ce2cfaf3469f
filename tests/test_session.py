"""Tests for hyouji.session: credential collection and repository resolution."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from github.GithubException import GithubException

from hyouji.config import Settings
from hyouji.github.detector import NOT_A_GIT_REPOSITORY, DetectionResult, GitRepositoryInfo
from hyouji.session import MAX_CREDENTIAL_ATTEMPTS, Session, initialize_session
from hyouji.storage.config_store import ConfigStore
from hyouji.storage.crypto import is_token_encrypted

NOT_DETECTED = DetectionResult(is_git_repository=False, error=NOT_A_GIT_REPOSITORY)


@pytest.fixture
def session(settings: Settings, store: ConfigStore) -> Session:
    return Session(settings=settings, store=store)


@pytest.fixture
def gh_client():
    with patch("hyouji.session.GitHubClient") as client_cls:
        client_cls.return_value.authenticated_login.return_value = "octocat"
        yield client_cls


@pytest.fixture
def prompts():
    with (
        patch("hyouji.session.ask_confirm", return_value=True) as confirm,
        patch("hyouji.session.ask_password") as password,
        patch("hyouji.session.ask_text") as text,
        patch("hyouji.session.detect_repository", return_value=NOT_DETECTED) as detect,
    ):
        yield MagicMock(confirm=confirm, password=password, text=text, detect=detect)


class TestFirstRun:
    def test_prompts_and_saves(
        self, session: Session, store: ConfigStore, token: str, gh_client, prompts
    ):
        prompts.password.return_value = token
        prompts.text.side_effect = ["octocat", "hello-world"]

        assert initialize_session(session)

        assert session.repository.full_name == "octocat/hello-world"
        assert session.repository.detection_method == "manual"
        assert session.client is gh_client.return_value
        gh_client.assert_called_once_with(
            token, "octocat", "hello-world", base_url=session.settings.api_url
        )
        saved = store.load_config()
        assert saved.owner == "octocat"
        assert saved.token == token
        assert is_token_encrypted(store.load_raw_token())

    def test_declining_token_exits(self, session: Session, gh_client, prompts):
        prompts.confirm.return_value = False
        assert not initialize_session(session)
        gh_client.assert_not_called()
        prompts.password.assert_not_called()

    def test_missing_repo_name(self, session: Session, token: str, gh_client, prompts):
        prompts.password.return_value = token
        prompts.text.side_effect = ["octocat", ""]
        assert not initialize_session(session)
        gh_client.assert_not_called()

    def test_rejected_token_retries_are_bounded(
        self, session: Session, token: str, login_lookup: MagicMock, gh_client, prompts
    ):
        prompts.password.return_value = token
        prompts.text.side_effect = ["octocat", "hello-world"] * MAX_CREDENTIAL_ATTEMPTS
        gh_client.return_value.authenticated_login.side_effect = GithubException(
            401, {"message": "Bad credentials"}, None
        )

        assert not initialize_session(session)

        assert session.client is None
        assert gh_client.call_count == MAX_CREDENTIAL_ATTEMPTS
        assert gh_client.return_value.close.call_count == MAX_CREDENTIAL_ATTEMPTS
        assert prompts.confirm.call_count == MAX_CREDENTIAL_ATTEMPTS
        login_lookup.assert_not_called()

    def test_rejected_token_reprompts_with_owner(
        self, session: Session, token: str, login_lookup: MagicMock, gh_client, prompts
    ):
        rejected, accepted = MagicMock(), MagicMock()
        rejected.authenticated_login.side_effect = GithubException(401, {}, None)
        accepted.authenticated_login.return_value = "octocat"
        gh_client.side_effect = [rejected, accepted]
        prompts.password.return_value = token
        prompts.text.side_effect = ["octocat", "hello-world", "octocat", "hello-world"]

        assert initialize_session(session)

        rejected.close.assert_called_once()
        accepted.authenticated_login.assert_called_once()
        assert session.client is accepted
        assert prompts.confirm.call_count == 2
        second_owner_prompt = prompts.text.call_args_list[2]
        assert second_owner_prompt.kwargs["default"] == "octocat"
        # The rejected token goes straight back to the prompts without another GET /user
        login_lookup.assert_not_called()


class TestSavedConfig:
    def test_reuses_config_with_detected_repo(
        self, session: Session, token: str, write_config, gh_client, prompts
    ):
        write_config(session.store.config_path, token)
        prompts.detect.return_value = DetectionResult(
            is_git_repository=True,
            repository_info=GitRepositoryInfo(
                owner="acme",
                repo="webapp",
                remote_url="git@github.com:acme/webapp.git",
                detection_method="origin",
            ),
        )

        assert initialize_session(session)

        prompts.confirm.assert_not_called()
        prompts.text.assert_not_called()
        assert session.repository.full_name == "acme/webapp"
        assert session.repository.detection_method == "origin"
        gh_client.assert_called_once_with(
            token, "acme", "webapp", base_url=session.settings.api_url
        )

    def test_saved_token_checked_once(
        self,
        session: Session,
        token: str,
        write_config,
        login_lookup: MagicMock,
        gh_client,
        prompts,
    ):
        write_config(session.store.config_path, token)
        prompts.text.return_value = "hello-world"

        assert initialize_session(session)

        login_lookup.assert_called_once_with(token)
        gh_client.return_value.authenticated_login.assert_not_called()

    def test_asks_only_for_repo_when_detection_fails(
        self, session: Session, token: str, write_config, gh_client, prompts
    ):
        write_config(session.store.config_path, token)
        prompts.text.return_value = "hello-world"

        assert initialize_session(session)

        prompts.text.assert_called_once()
        prompts.password.assert_not_called()
        assert session.repository.full_name == "octocat/hello-world"

    def test_expired_token_preserves_owner(
        self,
        session: Session,
        token: str,
        write_config,
        login_lookup: MagicMock,
        gh_client,
        prompts,
    ):
        write_config(session.store.config_path, token)
        login_lookup.side_effect = GithubException(401, {"message": "Bad credentials"}, None)
        prompts.password.return_value = token
        prompts.text.side_effect = ["octocat", "hello-world"]

        assert initialize_session(session)

        owner_prompt = prompts.text.call_args_list[0]
        assert owner_prompt.kwargs["default"] == "octocat"


class TestMigration:
    def test_first_start_encrypts_plain_config(
        self, session: Session, token: str, write_config, gh_client, prompts
    ):
        write_config(session.store.config_path, token, encrypt=False)
        prompts.text.return_value = "hello-world"

        assert initialize_session(session)

        assert is_token_encrypted(session.store.load_raw_token())

    def test_later_starts_skip_migration(
        self, session: Session, token: str, write_config, gh_client, prompts
    ):
        write_config(session.store.config_path, token, encrypt=False)
        prompts.text.return_value = "hello-world"
        session.first_start = False

        assert initialize_session(session)

        assert session.store.load_raw_token() == token


class TestSessionLabels:
    def test_requires_client(self, session: Session):
        with pytest.raises(RuntimeError):
            session.labels

    def test_service_is_cached(self, session: Session):
        session.client = MagicMock()
        assert session.labels is session.labels

    def test_close(self, session: Session):
        session.client = MagicMock()
        session.close()
        session.client.close.assert_called_once()
