"""Git gateway used to materialize remote capability sources.

Import from submodules:
- abc: Git, parse_ls_remote_commit
- real: RealGit
- fake: FakeGit
"""
