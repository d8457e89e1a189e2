# repoforge

A library for keeping many GitHub repositories in order. It can:

- parse repo specs
- load and validate configuration
- check repositories against policies
- run git queries and mutations
- find, explain and abort merge conflicts
- update dependencies one package at a time

The git operations call the `git` executable, so `git` must be on `PATH`. The dependency updates call `cargo`, `npm`, `go` or `pip`, whichever the repository uses.

## Install

```sh
pip install repoforge
```

## Repo specs

```python
from repoforge.repo_spec import RepoSpec

spec = RepoSpec.parse("https://github.com/octo/widgets.git")
spec.canonical()   # "octo/widgets"
spec.clone_url     # "https://github.com/octo/widgets.git"

spec = RepoSpec.parse("octo/widgets#develop as w")
spec.branch        # "develop"
spec.alias         # "w"
```

`RepoSpec.parse` accepts these forms:

- `owner/repo`
- `github.com/owner/repo`
- HTTPS URLs, with or without `.git`
- `git@host:owner/repo.git`

It raises `InvalidRepoSpecError` (from `repoforge.errors`) in these cases:

- empty input
- a missing owner or name
- specs that start with a GitLab, Gitea, Forgejo or Bitbucket prefix

## Configuration

`ConfigPaths.discover()` in `repoforge.config_paths` resolves three directories, each ending in `rfo`:

| Attribute | Taken from |
|---|---|
| `config_dir` | `$XDG_CONFIG_HOME` |
| `state_dir` | `$XDG_STATE_HOME` |
| `cache_dir` | `$XDG_CACHE_HOME` |

If a variable is not set, the directory falls back to the platform default.

```python
from repoforge.config_paths import ConfigPaths
from repoforge.loader import load_config, write_default

paths = ConfigPaths.discover()
write_default(paths.config_toml())      # False if the file already exists
cfg = load_config(paths.config_toml())  # validated AppConfig
cfg.core.parallel                       # 8 by default
```

`ConfigPaths` also gives these paths:

- `repos_list()`
- `policies_yaml()`
- `state_db()`
- `run_log_dir(run_id)`

`ensure_all()` creates the three directories. `expand_tilde` expands a leading `~`.

`load_config` behaves as follows:

- A missing file gives the defaults.
- A file that does not parse raises `ConfigError`.
- A field outside its allowed set raises `ConfigError`, for example `core.layout` other than `flat` or `nested`.

`AppConfig` round-trips through `to_toml()` / `from_toml()` and `to_dict()` / `from_dict()`. `repoforge.validate.validate(cfg)` checks a config you built yourself.

## Policies

```python
from repoforge.policy import Policy, check_policy

policy = Policy.from_yaml("required_files: [README.md, LICENSE]\ngithub_labels: [bug]\n")
report = check_policy(policy, "/path/to/repo", ["Bug"])
report.is_clean()
report.total_violations()
```

`Policy.default_policy()` has the following rules:

- It requires `README.md` and `LICENSE`.
- It requires the labels `bug`, `enhancement` and `good first issue`.

Labels are compared ignoring ASCII case. Any other top-level keys are kept in `policy.extra`.

## Git

```python
from repoforge import mutation, read
from repoforge.lock import RepoLock

read.status("/path/to/repo")          # RepoStatus: missing, dirty or current
read.ahead_behind("/path/to/repo", "origin/main").to_status()

with RepoLock.acquire("/path/to/repo", 30):
    outcome = mutation.pull("/path/to/repo", mutation.PullOpts())
    outcome.already_up_to_date
```

`repoforge.read` also has these functions:

- `discover`
- `head_oid`
- `current_branch`
- `is_dirty`
- `has_remote`
- `merged_branches`

`repoforge.mutation` has these functions:

- `run`
- `fetch`
- `fetch_remote`
- `pull`
- `clone`
- `commit` (stages only the files given)
- `push`
- `reset_hard`

Each returns a `GitCommandResult` or an outcome that holds one. `GitErrorKind.classify(stderr)` sorts a failure into auth, network, conflict, dirty, non-fast-forward or other.

`RepoLock` holds an exclusive lock through `<repo>/.rfo.lock`. If the lock is not free within the timeout, it raises `LockTimeoutError`. Releasing the lock removes the file.

## Conflicts

```python
from repoforge.conflict import abort, detect, explain, verify_resolved

state = detect("/path/to/repo")
if state is not None:
    print(explain(state))
    abort("/path/to/repo")

verify_resolved("/path/to/repo")
```

`detect` recognises an in-progress merge, rebase, cherry-pick or revert. `list_conflicts(paths)` keeps only the repositories that are in conflict.

`verify_resolved` raises a subclass of `MarkResolvedError` while anything is left unresolved:

- `OperationStillInProgressError`
- `UnmergedEntriesError`
- `ConflictMarkersRemainError`
- `NotARepoError`
- `IndexQueryFailedError`

## Dependency updates

```python
from repoforge.dep_update import check_outdated, detect_package_managers, update_and_test

for eco in detect_package_managers("/path/to/repo"):
    for pkg in check_outdated("/path/to/repo", eco):
        print(update_and_test("/path/to/repo", eco, pkg, 3).status)
```

For each package, `update_and_test` does the following:

1. Updates the package.
2. Runs the test suite.
3. If the tests pass, commits with `chore(deps): update <package>` and pushes the current branch to `origin`.
4. If the tests fail, resets the worktree and tries again, up to `max_retries` times.

## Other helpers

- `repoforge.redaction.redact_secret(secret, visible)`
- `repoforge.context.ContextPack` and `ContextCache`: plain containers for repository context.
- `repoforge.status.RepoStatus` and `AheadBehind`

## What it does not do

This is a library only:

- It has no command-line program.
- It does not talk to the GitHub API.
- It keeps no state database.
- It runs no background jobs or server.

The paths for a state database and run logs are resolved, but nothing here writes to them.

## Running the tests

```sh
pip install -e ".[test]"
pytest
```