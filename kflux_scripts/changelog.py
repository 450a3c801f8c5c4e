#!/usr/bin/env python3
"""
Changelog generator for a commit range

Tries a remote generator script first (GIST_URL) and falls back to a plain
`git log` listing when that produces nothing.
"""

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import requests
from dotenv import load_dotenv

from kflux_scripts.config import DEFAULT_GIST_URL
from kflux_scripts.console import ConsoleLogger, setup_logging
from kflux_scripts.shell import CommandError, execute_command, missing_tools

logger = logging.getLogger(__name__)

CHANGELOG_NAME = 'changelog.md'
GENERATOR_NAME = 'git-pr-changelog.sh'
REQUIRED_TOOLS = ('git',)


def compare_url(repo: str, base_sha: str, target_sha: str) -> str:
    return f"https://github.com/{repo}/compare/{base_sha}...{target_sha}"


def render_fallback_changelog(repo: str, base_sha: str, target_sha: str, commit_lines: str) -> str:
    """Markdown changelog built from `git log` output"""
    lines = [
        "# Changelog",
        "",
        f"**Repo:** {repo}",
        f"**Range:** `{base_sha}..{target_sha}`",
        "",
        "## Commits",
        "",
    ]
    if commit_lines.strip():
        lines.append(commit_lines.rstrip('\n'))
    lines += [
        "",
        "## Compare",
        compare_url(repo, base_sha, target_sha),
    ]
    return '\n'.join(lines) + '\n'


def render_default_mode_note(repo: str, base_sha: str, target_sha: str) -> str:
    return '\n'.join([
        "",
        "> Note: Gist didn't accept a SHA range; ran default mode.",
        f"> Base SHA:   {base_sha}",
        f"> Target SHA: {target_sha}",
        "",
        "## Compare",
        compare_url(repo, base_sha, target_sha),
    ]) + '\n'


def git_log_lines(work_dir: str, base_sha: str, target_sha: str) -> str:
    result = execute_command(
        ['git', 'log', '--no-merges', "--pretty=format:- %h %s (%an, %ad)", '--date=short',
         f"{base_sha}..{target_sha}"],
        cwd=work_dir, check=False
    )
    if result.returncode != 0:
        logger.warning(f"git log failed: {result.stderr.strip()}")
        return ''
    return result.stdout


class ChangelogGenerator:
    """Builds changelog.md for a repo and SHA range"""

    def __init__(self, repo: str, base_sha: str, target_sha: str,
                 gist_url: str = '', console: ConsoleLogger = None):
        self.repo = repo
        self.base_sha = base_sha
        self.target_sha = target_sha
        self.gist_url = gist_url
        self.console = console or ConsoleLogger()

    def fetch_commits(self, work_dir: str):
        execute_command(['git', 'fetch', '--all', '--tags', '--prune'], cwd=work_dir, check=False)
        execute_command(['git', 'fetch', 'origin', self.base_sha, self.target_sha], cwd=work_dir, check=False)

    def run_remote_generator(self, work_dir: str) -> None:
        """Download and run the configured generator script, if any"""
        if not self.gist_url:
            return
        script = Path(work_dir) / GENERATOR_NAME
        self.console.log_info("Fetching changelog generator…", "CHANGELOG")
        try:
            resp = requests.get(self.gist_url, timeout=30)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.console.log_warn(f"Could not download changelog generator: {e}", "CHANGELOG")
            return
        if not resp.text.strip():
            return
        script.write_text(resp.text, encoding='utf-8')
        script.chmod(0o755)

        with_range = ['bash', str(script), self.repo, self.base_sha, self.target_sha]
        if execute_command(with_range, cwd=work_dir, check=False).returncode == 0:
            return
        if execute_command(['bash', str(script), self.repo], cwd=work_dir, check=False).returncode == 0:
            with open(Path(work_dir) / CHANGELOG_NAME, 'a', encoding='utf-8') as f:
                f.write(render_default_mode_note(self.repo, self.base_sha, self.target_sha))

    def generate(self, work_dir: str) -> str:
        """Produce the changelog text inside work_dir"""
        self.fetch_commits(work_dir)
        changelog = Path(work_dir) / CHANGELOG_NAME
        if changelog.exists():
            changelog.unlink()

        self.run_remote_generator(work_dir)

        if not changelog.exists() or changelog.stat().st_size == 0:
            self.console.log_warn("Remote generator produced nothing; using git log", "CHANGELOG")
            changelog.write_text(
                render_fallback_changelog(self.repo, self.base_sha, self.target_sha,
                                          git_log_lines(work_dir, self.base_sha, self.target_sha)),
                encoding='utf-8'
            )
        return changelog.read_text(encoding='utf-8')

    def write(self, out_file: str, repo_dir: Optional[str] = None) -> str:
        """Generate in repo_dir (or a temporary clone) and write out_file"""
        out_path = Path(out_file)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        if repo_dir:
            if not (Path(repo_dir) / '.git').is_dir():
                raise CommandError(f"Provided --dir is not a git repository: {repo_dir}")
            content = self.generate(repo_dir)
        else:
            with tempfile.TemporaryDirectory() as work_dir:
                self.console.log_info(f"Cloning {self.repo} to {work_dir}", "CHANGELOG")
                execute_command(['git', 'clone', f"https://github.com/{self.repo}.git", work_dir])
                content = self.generate(work_dir)

        generated_in_place = repo_dir and out_path.resolve() == (Path(repo_dir) / CHANGELOG_NAME).resolve()
        if not generated_in_place:
            out_path.write_text(content, encoding='utf-8')
        return content


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='kflux-changelog',
        description='Generate changelog.md for a commit range'
    )
    parser.add_argument('-r', dest='repo', required=True, help='owner/repo')
    parser.add_argument('-b', dest='base_sha', required=True, help='base SHA')
    parser.add_argument('-t', dest='target_sha', required=True, help='target SHA')
    parser.add_argument('-d', dest='repo_dir', help='existing git checkout to use')
    parser.add_argument('-o', dest='out_file', required=True, help='output file')
    return parser


def main(argv: List[str] = None) -> int:
    load_dotenv()
    args = create_argument_parser().parse_args(argv)
    console = ConsoleLogger(setup_logging(os.getenv('LOG_LEVEL', 'INFO'), os.getenv('LOG_FILE', '')))

    missing = missing_tools(REQUIRED_TOOLS)
    if missing:
        console.log_error(f"Missing dependency: {', '.join(missing)}")
        return 1

    generator = ChangelogGenerator(args.repo, args.base_sha, args.target_sha,
                                   gist_url=os.getenv('GIST_URL', DEFAULT_GIST_URL), console=console)
    try:
        generator.write(args.out_file, args.repo_dir)
    except CommandError as e:
        console.log_error(str(e))
        return 1

    console.log_info(f"Changelog written to: {args.out_file}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
