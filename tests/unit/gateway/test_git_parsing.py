"""Tests for git ls-remote output parsing."""

from capsync.gateway.git.abc import parse_ls_remote_commit

COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


def test_single_line() -> None:
    assert parse_ls_remote_commit(f"{COMMIT_A}\trefs/heads/main\n") == COMMIT_A


def test_annotated_tag_prefers_peeled_commit() -> None:
    output = f"{COMMIT_A}\trefs/tags/v1\n{COMMIT_B}\trefs/tags/v1^{{}}\n"

    assert parse_ls_remote_commit(output) == COMMIT_B


def test_empty_output_means_ref_not_found() -> None:
    assert parse_ls_remote_commit("") is None
    assert parse_ls_remote_commit("\n  \n") is None


def test_ref_matches_exact_branch_only() -> None:
    """ls-remote also lists branches that merely end in the queried name."""
    output = f"{COMMIT_A}\trefs/heads/feature/main\n{COMMIT_B}\trefs/heads/main\n"

    assert parse_ls_remote_commit(output, "main") == COMMIT_B


def test_ref_prefers_branch_over_tag() -> None:
    output = f"{COMMIT_A}\trefs/tags/v1\n{COMMIT_B}\trefs/heads/v1\n"

    assert parse_ls_remote_commit(output, "v1") == COMMIT_B


def test_ref_resolves_annotated_tag_to_peeled_commit() -> None:
    output = (
        f"{COMMIT_A}\trefs/tags/release/v1\n"
        f"{COMMIT_A}\trefs/tags/v1\n"
        f"{COMMIT_B}\trefs/tags/v1^{{}}\n"
    )

    assert parse_ls_remote_commit(output, "v1") == COMMIT_B


def test_ref_without_exact_match_is_not_found() -> None:
    output = f"{COMMIT_A}\trefs/heads/feature/main\n"

    assert parse_ls_remote_commit(output, "main") is None


def test_head_query() -> None:
    assert parse_ls_remote_commit(f"{COMMIT_A}\tHEAD\n", "HEAD") == COMMIT_A
