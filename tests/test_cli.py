"""Tests for argument parsing and the CLI exit codes."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import cli
from argument_parser import parse_arguments
from config import ActionKind, ContentCopyParams, DefaultBranchParams, NoParams
from errors import AuthError, NotFoundError, TransportError
from models import Outcome, Platform, RepositoryRef
from report import ReportAggregator


@pytest.fixture(autouse=True)
def _tokens(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('GITLAB_TOKEN', 'gl-token')
    monkeypatch.setenv('GITHUB_TOKEN', 'gh-token')
    monkeypatch.delenv('GITLAB_USERNAME', raising=False)


def _report(action: ActionKind, refs, outcomes):
    aggregator = ReportAggregator(action, refs)
    for index, outcome in enumerate(outcomes):
        aggregator.record(index, outcome)
    return aggregator.finalize()


def test_parse_list_command() -> None:
    args, cfg = parse_arguments(['list', '--starts-with', 'project', '--limit', '10', 'FOO'])

    assert args.command == 'list'
    assert args.group == 'FOO'
    assert args.starts_with == 'project'
    assert args.limit == 10
    assert cfg.gitlab.token == 'gl-token'
    assert cfg.execution.max_workers == 5
    assert cfg.execution.retries == 0


def test_parse_execution_options() -> None:
    _, cfg = parse_arguments(
        ['-w', '3', '--timeout', '10', '--retries', '2', 'archive-project', 'FOO/p1']
    )

    assert cfg.execution.max_workers == 3
    assert cfg.execution.timeout_s == 10.0
    assert cfg.execution.retries == 2


def test_invalid_worker_count_exits_with_validation_code() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(['-w', '50', 'archive-project', 'FOO/p1'])
    assert excinfo.value.code == 2


def test_invalid_repository_name_exits_with_validation_code() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(['auto-delete-head-branches', 'some-org', 'bad name'])
    assert excinfo.value.code == 2


def test_missing_github_token_exits_with_auth_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv('GITHUB_TOKEN')

    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(['set-default-branch', 'some-org', 'main', 'repo1'])
    assert excinfo.value.code == 40


def test_archive_only_needs_gitlab_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv('GITHUB_TOKEN')

    args, cfg = parse_arguments(['archive-project', 'FOO/p1', 'FOO/sub/p2'])

    assert args.projects == ['FOO/p1', 'FOO/sub/p2']
    assert cfg.github.token == ''


@patch('cli.MigrationOrchestrator')
def test_list_prints_one_name_per_line(
    mock_orchestrator: MagicMock, capsys: pytest.CaptureFixture
) -> None:
    mock_orchestrator.return_value.list_repositories.return_value = [
        RepositoryRef(Platform.GITLAB, 'FOO', 'project-a'),
        RepositoryRef(Platform.GITLAB, 'FOO', 'project-z'),
    ]

    code = cli.main(['list', '--starts-with', 'project', 'FOO'])

    assert code == 0
    mock_orchestrator.return_value.list_repositories.assert_called_once_with('FOO', 'project', 50)
    assert capsys.readouterr().out.splitlines() == ['project-a', 'project-z']


@patch('cli.MigrationOrchestrator')
def test_target_action_builds_refs_and_returns_report_code(mock_orchestrator: MagicMock) -> None:
    refs = (
        RepositoryRef(Platform.GITHUB, 'some-org', 'repo1'),
        RepositoryRef(Platform.GITHUB, 'some-org', 'repo2'),
    )
    mock_orchestrator.return_value.run_action.return_value = _report(
        ActionKind.SET_DEFAULT_BRANCH, refs, [Outcome.applied(), Outcome.failed(TransportError('timeout'))]
    )

    code = cli.main(['set-default-branch', 'some-org', 'main', 'repo1', 'repo2'])

    assert code == 1
    action, targets, params = mock_orchestrator.return_value.run_action.call_args.args
    assert action == ActionKind.SET_DEFAULT_BRANCH
    assert tuple(targets) == refs
    assert params == DefaultBranchParams(branch='main')


@patch('cli.MigrationOrchestrator')
def test_archive_targets_are_gitlab_paths(mock_orchestrator: MagicMock) -> None:
    ref = RepositoryRef(Platform.GITLAB, 'FOO/sub', 'p2')
    mock_orchestrator.return_value.run_action.return_value = _report(
        ActionKind.ARCHIVE_PROJECT, (ref,), [Outcome.applied()]
    )

    code = cli.main(['archive-project', 'FOO/sub/p2'])

    assert code == 0
    _, targets, params = mock_orchestrator.return_value.run_action.call_args.args
    assert targets == [ref]
    assert params == NoParams()


@patch('cli.MigrationOrchestrator')
def test_copy_content_goes_through_group_listing(mock_orchestrator: MagicMock) -> None:
    mock_orchestrator.return_value.copy_group.return_value = _report(ActionKind.COPY_CONTENT, (), [])

    code = cli.main(['copy-content', '--github-org', 'BAR', '--starts-with', 'project', 'FOO'])

    assert code == 0
    mock_orchestrator.return_value.copy_group.assert_called_once_with(
        'FOO', ContentCopyParams(target_owner='BAR', private=True), 'project', 50
    )


@patch('cli.MigrationOrchestrator')
def test_missing_template_exits_with_validation_code(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    code = cli.main(['create-webhook', '-c', str(tmp_path / 'nope.yml'), 'some-org', 'repo1'])

    assert code == 2
    mock_orchestrator.return_value.run_action.assert_not_called()


@patch('cli.MigrationOrchestrator')
def test_auth_failure_exits_40(mock_orchestrator: MagicMock) -> None:
    mock_orchestrator.return_value.list_repositories.side_effect = AuthError('bad token', status_code=401)

    assert cli.main(['list', 'FOO']) == 40


@patch('cli.MigrationOrchestrator')
def test_listing_failure_exits_30(mock_orchestrator: MagicMock) -> None:
    mock_orchestrator.return_value.list_repositories.side_effect = NotFoundError('no group', status_code=404)

    assert cli.main(['list', 'FOO']) == 30


@patch('cli.MigrationOrchestrator')
def test_failed_lines_go_to_stderr_and_applied_lines_to_stdout(
    mock_orchestrator: MagicMock, capsys: pytest.CaptureFixture
) -> None:
    refs = (
        RepositoryRef(Platform.GITHUB, 'some-org', 'repoA'),
        RepositoryRef(Platform.GITHUB, 'some-org', 'repoB'),
    )
    mock_orchestrator.return_value.run_action.return_value = _report(
        ActionKind.AUTO_DELETE_HEAD_BRANCHES,
        refs,
        [Outcome.applied(), Outcome.failed(AuthError('Must have admin rights to Repository.', status_code=403))],
    )

    code = cli.main(['auto-delete-head-branches', 'some-org', 'repoA', 'repoB'])

    captured = capsys.readouterr()
    assert code == 1
    assert 'Enabled auto delete of head branches for repo repoA' in captured.out
    assert 'repoB' not in captured.out
    assert (
        'Updating auto delete of head branches for some-org/repoB failed: '
        'Must have admin rights to Repository. (HTTP 403)'
    ) in captured.err
    assert 'repoA' not in captured.err
