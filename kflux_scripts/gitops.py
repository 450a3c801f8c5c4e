#!/usr/bin/env python3
"""
GitOps PR workflow for promoting the staging UI build to production

Reads the UI SHAs pinned in the infra-deployments kustomizations, generates a
changelog for the range, commits the production bump on a new branch and
pushes it to the fork. Pull request creation is left to the calling workflow,
which receives the branch and changelog through GITHUB_OUTPUT.
"""

import os
import re
import sys
import tempfile
import time
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

from kflux_scripts.changelog import ChangelogGenerator
from kflux_scripts.config import GitOpsConfig
from kflux_scripts.console import ConsoleLogger, setup_logging
from kflux_scripts.shell import CommandError, execute_command, missing_tools

SHA_PATTERN = re.compile(r'[0-9a-fA-F]{40}')
REQUIRED_TOOLS = ('git', 'gh')


class GitOpsError(Exception):
    """The kustomization files are not in the expected shape"""


def _read_line(path: Path, line_number: int) -> str:
    lines = path.read_text(encoding='utf-8').splitlines()
    if line_number < 1 or line_number > len(lines):
        return ''
    return lines[line_number - 1]


def extract_sha(path: Path, line_number: int) -> Optional[str]:
    """First 40-hex SHA on the given 1-based line, if any"""
    match = SHA_PATTERN.search(_read_line(Path(path), line_number))
    return match.group(0) if match else None


def replace_sha(path: Path, line_number: int, new_sha: str) -> str:
    """Replace the first SHA on a line in place and return the new line"""
    path = Path(path)
    text = path.read_text(encoding='utf-8')
    lines = text.splitlines(keepends=True)
    if line_number < 1 or line_number > len(lines):
        raise GitOpsError(f"{path} has no line {line_number}")

    lines[line_number - 1] = SHA_PATTERN.sub(new_sha, lines[line_number - 1], count=1)
    new_line = lines[line_number - 1].rstrip('\n')
    if new_sha not in new_line:
        raise GitOpsError(f"Failed to set {new_sha} on line {line_number}; current line is: {new_line}")

    updated = ''.join(lines)
    try:
        yaml.safe_load(updated)
    except yaml.YAMLError as e:
        raise GitOpsError(f"{path} is no longer valid YAML after the update: {e}") from e
    path.write_text(updated, encoding='utf-8')
    return new_line


def short_sha(sha: str, width: int = 12) -> str:
    return sha[:width]


def write_github_output(path: str, values: Dict[str, str], multiline: Dict[str, str] = None):
    """Append key=value pairs and heredoc blocks to a GITHUB_OUTPUT file"""
    delimiter = f"EOF_{int(time.time())}_{os.getpid()}"
    with open(path, 'a', encoding='utf-8') as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")
        for key, value in (multiline or {}).items():
            f.write(f"{key}<<{delimiter}\n")
            f.write(value if value.endswith('\n') else value + '\n')
            f.write(f"{delimiter}\n")


class GitOpsWorkflow:
    """Branch, bump and push the production kustomization"""

    def __init__(self, cfg: GitOpsConfig, console: ConsoleLogger = None):
        self.cfg = cfg
        self.console = console or ConsoleLogger()

    def check_dependencies(self) -> bool:
        missing = missing_tools(REQUIRED_TOOLS)
        if missing:
            self.console.log_error(f"Missing dependency: {', '.join(missing)}", "CHECK")
            return False
        if execute_command(['gh', 'auth', 'status'], check=False).returncode != 0:
            self.console.log_error("Run 'gh auth login' first.", "CHECK")
            return False
        return True

    def clone(self, repo: str, dest: Path):
        self.console.log_info(f"Cloning {repo}", "GIT")
        execute_command(['gh', 'repo', 'clone', repo, str(dest), '--', '-q'])

    def set_remote(self, repo_dir: Path, name: str, repo: str):
        url = f"https://github.com/{repo}.git"
        exists = execute_command(['git', 'remote', 'get-url', name], cwd=str(repo_dir), check=False)
        action = 'set-url' if exists.returncode == 0 else 'add'
        execute_command(['git', 'remote', action, name, url], cwd=str(repo_dir))

    def read_shas(self, upstream_dir: Path):
        base_sha = extract_sha(upstream_dir / self.cfg.prod_file, self.cfg.prod_sha_line)
        target_sha = extract_sha(upstream_dir / self.cfg.stg_file, self.cfg.stg_sha_line)
        return base_sha, target_sha

    def bump_production(self, infra_dir: Path, base_sha: str, target_sha: str) -> bool:
        """Commit the production bump on a new branch; False when nothing changed"""
        cwd = str(infra_dir)
        self.set_remote(infra_dir, 'upstream', self.cfg.upstream_repo)
        self.set_remote(infra_dir, 'downstream', self.cfg.fork_repo)
        execute_command(['git', 'checkout', '-b', self.cfg.branch_name], cwd=cwd)

        prod_path = infra_dir / self.cfg.prod_file
        if not prod_path.is_file():
            raise GitOpsError(f"Cannot find production kustomization: {prod_path}")

        self.console.log_info(f"Updating production line {self.cfg.prod_sha_line} SHA → {target_sha}", "GIT")
        new_line = replace_sha(prod_path, self.cfg.prod_sha_line, target_sha)
        self.console.log_info(f"Line {self.cfg.prod_sha_line} now is: {new_line.strip()}", "GIT")

        if execute_command(['git', 'diff', '--quiet', '--', self.cfg.prod_file], cwd=cwd, check=False).returncode == 0:
            self.console.log_info(f"No change in {self.cfg.prod_file}; skipping commit, push and PR", "GIT")
            return False

        execute_command(['git', 'add', self.cfg.prod_file], cwd=cwd)
        execute_command(['git', 'commit', '-m',
                         f"chore: bump konflux-ui (production) {short_sha(base_sha)} => {short_sha(target_sha)}"],
                        cwd=cwd)
        if self.cfg.dry_run:
            self.console.log_warn(f"DRY RUN - not pushing {self.cfg.branch_name}", "GIT")
        else:
            execute_command(['git', 'push', 'downstream', self.cfg.branch_name], cwd=cwd)
        return True

    def run(self) -> int:
        if not self.check_dependencies():
            return 1

        with tempfile.TemporaryDirectory() as root:
            root = Path(root)
            self.console.log_info(f"Working dir: {root}")

            self.clone(self.cfg.upstream_repo, root / 'infra-upstream')
            base_sha, target_sha = self.read_shas(root / 'infra-upstream')
            if not base_sha or not target_sha:
                self.console.log_error("Failed to extract SHAs from the kustomization files")
                self.console.say(f"  Prod file: {self.cfg.prod_file}")
                self.console.say(f"  Stg  file: {self.cfg.stg_file}")
                return 1

            self.console.log_info(f"Base   (production) SHA: {base_sha}")
            self.console.log_info(f"Target (staging)    SHA: {target_sha}")
            if base_sha == target_sha:
                self.console.log_info("No changes detected: production and staging point to the same SHA")
                return 0

            self.clone(self.cfg.kui_repo, root / 'konflux-ui')
            changelog = ChangelogGenerator(self.cfg.kui_repo, base_sha, target_sha,
                                           gist_url=self.cfg.gist_url, console=self.console)
            content = changelog.write(str(root / 'konflux-ui' / 'changelog.md'), str(root / 'konflux-ui'))
            self.console.say(content)

            self.clone(self.cfg.upstream_repo, root / 'infra-fork')
            if not self.bump_production(root / 'infra-fork', base_sha, target_sha):
                return 0

            if self.cfg.dry_run:
                self.console.log_warn(f"DRY RUN - {self.cfg.branch_name} committed locally, not pushed; "
                                      "no PR outputs written")
                return 0

            output_path = os.getenv('GITHUB_OUTPUT')
            if output_path:
                write_github_output(
                    output_path,
                    {
                        'base_sha': base_sha,
                        'target_sha': target_sha,
                        'branch_name': self.cfg.branch_name,
                        'pr_title': self.cfg.pr_title,
                    },
                    multiline={'changelog_content': content},
                )

        self.console.log_info("✅ Done: Branch pushed and ready for PR creation.")
        self.console.say(f"   Branch: {self.cfg.branch_name}")
        self.console.say(f"   Range: {self.cfg.kui_repo} {base_sha}...{target_sha}")
        return 0


def main() -> int:
    load_dotenv()
    cfg = GitOpsConfig()
    console = ConsoleLogger(setup_logging(cfg.log_level, cfg.log_file))
    try:
        return GitOpsWorkflow(cfg, console).run()
    except (CommandError, GitOpsError) as e:
        console.log_error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
