from hypothesis import given
from hypothesis import strategies as st

from git_scout import auth, ops
from git_scout.models import FileState, FileStatus

states = st.sampled_from(list(FileState))
snapshots = st.dictionaries(
    st.text(min_size=1), st.builds(FileStatus, staging=states, worktree=states)
)


@given(status=snapshots)
def test_count_changes_matches_definition(status: dict[str, FileStatus]) -> None:
    """
    Property: The change count equals the number of paths where either the
    staged or the worktree state differs from UNMODIFIED, and never exceeds
    the number of paths.
    """
    expected = len(
        [
            s
            for s in status.values()
            if s.staging is not FileState.UNMODIFIED
            or s.worktree is not FileState.UNMODIFIED
        ]
    )
    result = ops.count_changes(status)
    assert result == expected
    assert 0 <= result <= len(status)


logins = st.text(
    alphabet=st.characters(categories=("Ll", "Lu", "Nd")), min_size=1
)
hosts = st.from_regex(r"[a-z][a-z0-9-]{0,20}(\.[a-z]{2,6}){1,2}", fullmatch=True)
paths = st.from_regex(r"[a-z0-9_-]{1,12}(/[a-z0-9_-]{1,12}){0,3}\.git", fullmatch=True)


@given(user=logins, host=hosts, path=paths)
def test_scp_and_url_forms_agree(user: str, host: str, path: str) -> None:
    """
    Property: The same login is derived from the scp-like and the ssh:// form
    of a remote URL.
    """
    scp = f"{user}@{host}:{path}"
    url = f"ssh://{user}@{host}/{path}"
    assert auth.derive_username(scp) == user
    assert auth.derive_username(url) == user
