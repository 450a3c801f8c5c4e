#!/usr/bin/env python3
"""
Jira Issue Closer
Closes released Jira issues referenced in a changelog

Only issues in "Release Pending" status are transitioned automatically. Every
other open issue is listed with its status and assignee for manual review.
"""

import argparse
import logging
import os
import re
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import requests
from dotenv import load_dotenv

from kflux_scripts.config import JiraConfig
from kflux_scripts.console import Colors, ConsoleLogger, setup_logging

logger = logging.getLogger(__name__)

ISSUE_KEY_CANDIDATE = re.compile(r'\b[A-Z][A-Z0-9]*-[0-9]+\b')
ISSUE_KEY_STRICT = re.compile(r'^[A-Z][A-Z0-9]+-[0-9]+$')
MAX_ISSUE_KEY_LENGTH = 50

VERSION_PATTERN = re.compile(r'^[a-zA-Z0-9._-]+$')
MAX_VERSION_LENGTH = 100
RATE_LIMIT_PATTERN = re.compile(r'[0-9]+')
URL_PATTERN = re.compile(r'^https?://[a-zA-Z0-9][a-zA-Z0-9.-]+[a-zA-Z0-9](:[0-9]+)?(/.*)?$')

CLOSED_STATUSES = frozenset({'done', 'closed', 'resolved'})
RELEASE_PENDING = 'release pending'
TRANSITION_PREFERENCE = ('Done', 'Close', 'Closed', 'Resolve', 'Resolved')

SEPARATOR = '=' * 60


class JiraError(Exception):
    """Jira request failed or returned an unexpected status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IssueNotFound(JiraError):
    pass


class StatusClass(Enum):
    ALREADY_CLOSED = 'already-closed'
    NOT_APPLICABLE = 'not-applicable'
    ELIGIBLE = 'eligible'


class IssueOutcome(Enum):
    CLOSED = 'closed'
    ALREADY_CLOSED = 'already-closed'
    NOT_RELEASE_PENDING = 'not-release-pending'
    DRY_RUN_SKIPPED = 'dry-run-skipped'
    FAILED = 'failed'


@dataclass
class JiraIssueRecord:
    key: str
    status: str
    assignee: str


@dataclass
class CloseStats:
    """Counters for one closer run plus issues that need a human"""
    closed: int = 0
    already_closed: int = 0
    not_release_pending: int = 0
    dry_run_skipped: int = 0
    failed: int = 0
    total: int = 0
    manual_review: List[JiraIssueRecord] = field(default_factory=list)

    def record(self, outcome: IssueOutcome, issue: Optional[JiraIssueRecord] = None) -> 'CloseStats':
        self.total += 1
        if outcome is IssueOutcome.CLOSED:
            self.closed += 1
        elif outcome is IssueOutcome.ALREADY_CLOSED:
            self.already_closed += 1
        elif outcome is IssueOutcome.NOT_RELEASE_PENDING:
            self.not_release_pending += 1
            if issue is not None:
                self.manual_review.append(issue)
        elif outcome is IssueOutcome.DRY_RUN_SKIPPED:
            self.dry_run_skipped += 1
        else:
            self.failed += 1
        return self


# =========================
# Validation and extraction
# =========================

def validate_issue_key(key: str, console: ConsoleLogger = None) -> bool:
    """Check an issue key against the expected format and length"""
    if not ISSUE_KEY_STRICT.match(key):
        if console:
            console.log_warn(f"Invalid Jira issue key format: {key}", "EXTRACT")
        return False
    if len(key) > MAX_ISSUE_KEY_LENGTH:
        if console:
            console.log_warn(f"Jira issue key too long: {key}", "EXTRACT")
        return False
    return True


def extract_issue_keys(text: str, console: ConsoleLogger = None) -> List[str]:
    """Unique, sorted issue keys found in text; malformed candidates are dropped"""
    candidates = sorted(set(ISSUE_KEY_CANDIDATE.findall(text)))
    return [key for key in candidates if validate_issue_key(key, console)]


def classify_status(status: str) -> StatusClass:
    normalized = (status or '').strip().lower()
    if normalized in CLOSED_STATUSES:
        return StatusClass.ALREADY_CLOSED
    if normalized == RELEASE_PENDING:
        return StatusClass.ELIGIBLE
    return StatusClass.NOT_APPLICABLE


def select_transition(transitions: Iterable[Dict]) -> Optional[Tuple[str, str]]:
    """First (id, name) following TRANSITION_PREFERENCE, matched case-insensitively"""
    by_name = {}
    for transition in transitions:
        name = str(transition.get('name', '')).lower()
        by_name.setdefault(name, transition)
    for preferred in TRANSITION_PREFERENCE:
        match = by_name.get(preferred.lower())
        if match is not None and match.get('id') is not None:
            return str(match['id']), preferred
    return None


# =========================
# Jira REST client
# =========================

class JiraClient:
    """Minimal Jira REST v2 client using bearer token authentication"""

    def __init__(self, base_url: str, token: str, timeout: int = 30,
                 session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'Authorization': f"Bearer {token}",
        })

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/rest/api/2/{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise JiraError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _json(resp: requests.Response, key: str) -> Dict:
        """Decoded JSON object body; anything else is a JiraError"""
        try:
            payload = resp.json()
        except ValueError as e:
            raise JiraError(f"Invalid JSON from {key}: {e}", resp.status_code) from e
        if not isinstance(payload, dict):
            raise JiraError(f"Invalid JSON from {key}: expected an object", resp.status_code)
        return payload

    def get_issue(self, key: str) -> Dict:
        resp = self._request('GET', f"issue/{key}")
        if resp.status_code == 404:
            raise IssueNotFound(f"Issue {key} not found", 404)
        if resp.status_code != 200:
            raise JiraError(f"Error fetching {key}: HTTP {resp.status_code}", resp.status_code)
        return self._json(resp, key)

    def get_transitions(self, key: str) -> List[Dict]:
        resp = self._request('GET', f"issue/{key}/transitions")
        if resp.status_code != 200:
            raise JiraError(f"Error listing transitions for {key}: HTTP {resp.status_code}",
                            resp.status_code)
        transitions = self._json(resp, key).get('transitions') or []
        if not isinstance(transitions, list):
            raise JiraError(f"Invalid transitions list from {key}", resp.status_code)
        return [t for t in transitions if isinstance(t, dict)]

    def transition_issue(self, key: str, transition_id: str) -> None:
        resp = self._request('POST', f"issue/{key}/transitions",
                             json={'transition': {'id': transition_id}})
        if resp.status_code not in (200, 204):
            raise JiraError(f"Error transitioning {key}: HTTP {resp.status_code}", resp.status_code)

    def add_comment(self, key: str, body: str) -> None:
        resp = self._request('POST', f"issue/{key}/comment", json={'body': body})
        if resp.status_code not in (200, 201):
            raise JiraError(f"Error adding comment to {key}: HTTP {resp.status_code}", resp.status_code)


def parse_issue(key: str, payload: Dict) -> JiraIssueRecord:
    fields = payload.get('fields') or {}
    status = (fields.get('status') or {}).get('name') or 'Unknown'
    assignee = (fields.get('assignee') or {}).get('displayName') or 'Unassigned'
    return JiraIssueRecord(key=key, status=status, assignee=assignee)


# =========================
# Issue processing
# =========================

class IssueCloser:
    """Walks issue keys one at a time and closes the release-pending ones"""

    def __init__(self, client: JiraClient, dry_run: bool = False, version: str = '',
                 rate_limit_seconds: int = 1, console: ConsoleLogger = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.dry_run = dry_run
        self.version = version
        self.rate_limit_seconds = rate_limit_seconds
        self.console = console or ConsoleLogger()
        self.sleep = sleep

    def rate_limit(self):
        if self.rate_limit_seconds > 0:
            self.sleep(self.rate_limit_seconds)

    def close_issue(self, key: str) -> bool:
        """Comment (when a version is known) and transition to a closed state"""
        if self.version:
            self.rate_limit()
            try:
                self.client.add_comment(key, f"This issue has been released in version {self.version}.")
                self.console.say(f"  💬 Added comment to {key}")
            except JiraError as e:
                self.console.say(f"  ❌ {e}", Colors.RED)

        self.rate_limit()
        try:
            transitions = self.client.get_transitions(key)
            if not transitions:
                self.console.say(f"  ⚠️  No transitions available for {key}", Colors.YELLOW)
                return False
            selected = select_transition(transitions)
            if selected is None:
                available = ', '.join(str(t.get('name')) for t in transitions) or 'none'
                self.console.say(f"  ⚠️  No suitable transition found for {key}", Colors.YELLOW)
                self.console.say(f"     Available transitions: {available}")
                return False
            transition_id, transition_name = selected
            self.client.transition_issue(key, transition_id)
        except JiraError as e:
            self.console.say(f"  ❌ {e}", Colors.RED)
            return False

        self.console.say(f"  ✅ Transitioned {key} to '{transition_name}'", Colors.GREEN)
        return True

    def process_issue(self, key: str) -> Tuple[IssueOutcome, Optional[JiraIssueRecord]]:
        self.console.say(f"\n🔍 Processing {key}...")

        if not validate_issue_key(key, self.console):
            return IssueOutcome.FAILED, None

        self.rate_limit()
        try:
            issue = parse_issue(key, self.client.get_issue(key))
        except IssueNotFound:
            self.console.say(f"  ⚠️  Issue {key} not found", Colors.YELLOW)
            return IssueOutcome.FAILED, None
        except JiraError as e:
            self.console.say(f"  ❌ {e}", Colors.RED)
            return IssueOutcome.FAILED, None

        self.console.say(f"  📊 Current status: {issue.status}")
        self.console.say(f"  👤 Assignee: {issue.assignee}")

        status_class = classify_status(issue.status)
        if status_class is StatusClass.ALREADY_CLOSED:
            self.console.say(f"  ℹ️  Issue is already {issue.status}")
            return IssueOutcome.ALREADY_CLOSED, issue
        if status_class is StatusClass.NOT_APPLICABLE:
            self.console.say("  ⏭️  Skipping - Not in 'Release Pending' status")
            return IssueOutcome.NOT_RELEASE_PENDING, issue

        if self.dry_run:
            self.console.say(f"  🔸 [DRY RUN] Would transition {key} to Done", Colors.YELLOW)
            if self.version:
                self.console.say(f"  🔸 [DRY RUN] Would add comment: Released in version {self.version}",
                                 Colors.YELLOW)
            return IssueOutcome.DRY_RUN_SKIPPED, issue

        if self.close_issue(key):
            return IssueOutcome.CLOSED, issue
        return IssueOutcome.FAILED, issue

    def run(self, keys: Iterable[str]) -> CloseStats:
        stats = CloseStats()
        for key in keys:
            outcome, issue = self.process_issue(key)
            logger.info(f"{key}: {outcome.value}")
            stats = stats.record(outcome, issue)
        return stats


# =========================
# Reporting
# =========================

def print_manual_review(stats: CloseStats, console: ConsoleLogger):
    if not stats.manual_review:
        return
    console.say(f"\n{SEPARATOR}")
    console.say("📋 Issues NOT in 'Release Pending' status (not auto-closed):")
    console.say(SEPARATOR)
    for issue in stats.manual_review:
        console.say(f"  • {issue.key:<15} Status: {issue.status:<20} Assignee: {issue.assignee}")


def print_summary(stats: CloseStats, dry_run: bool, console: ConsoleLogger):
    console.say(f"\n{SEPARATOR}")
    console.say("📊 Summary")
    console.say(SEPARATOR)
    console.say(f"✅ Successfully closed:        {stats.closed}")
    console.say(f"ℹ️  Already closed:            {stats.already_closed}")
    console.say(f"⏭️  Not 'Release Pending':     {stats.not_release_pending}")
    console.say(f"⚠️  Skipped (dry-run):         {stats.dry_run_skipped}")
    console.say(f"❌ Failed:                    {stats.failed}")
    console.say(f"📝 Total processed:           {stats.total}")

    if dry_run:
        console.say("\n💡 Run without --dry-run to actually close the issues")
    if stats.not_release_pending:
        console.say("\n💡 Note: Issues not in 'Release Pending' status are listed above but not auto-closed")


def write_github_summary(stats: CloseStats, environ: Dict[str, str] = None):
    """Append outputs and a Markdown step summary when running in GitHub Actions"""
    environ = os.environ if environ is None else environ

    output_path = environ.get('GITHUB_OUTPUT')
    if output_path:
        with open(output_path, 'a', encoding='utf-8') as f:
            f.write(f"issues_closed={stats.closed}\n")
            f.write(f"issues_already_closed={stats.already_closed}\n")
            f.write(f"issues_skipped={stats.not_release_pending}\n")
            f.write(f"issues_failed={stats.failed}\n")

    summary_path = environ.get('GITHUB_STEP_SUMMARY')
    if summary_path:
        lines = [
            "## Jira Issue Closer Summary",
            "",
            "| Metric | Count |",
            "|--------|-------|",
            f"| ✅ Successfully closed | {stats.closed} |",
            f"| ℹ️ Already closed | {stats.already_closed} |",
            f"| ⏭️ Not 'Release Pending' | {stats.not_release_pending} |",
            f"| ⚠️ Skipped (dry-run) | {stats.dry_run_skipped} |",
            f"| ❌ Failed | {stats.failed} |",
        ]
        if stats.manual_review:
            lines += [
                "",
                "### Issues Not Auto-Closed (Not in 'Release Pending' status)",
                "",
                "| Issue | Status | Assignee |",
                "|-------|--------|----------|",
            ]
            lines += [f"| {i.key} | {i.status} | {i.assignee} |" for i in stats.manual_review]
        with open(summary_path, 'a', encoding='utf-8') as f:
            f.write('\n'.join(lines) + '\n')


# =========================
# Command line
# =========================

class CloserArgumentParser(argparse.ArgumentParser):
    """Argument errors exit with status 1"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def create_argument_parser() -> argparse.ArgumentParser:
    parser = CloserArgumentParser(
        prog='kflux-close-issues',
        description='Close released Jira issues found in a changelog',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Only issues in "Release Pending" status are closed automatically. Other issues
are listed with their ID, assignee and status for manual review.

Environment Variables:
  JIRA_URL           Jira server URL
  JIRA_API_TOKEN     Jira API token (required)
  RATE_LIMIT_SECONDS Delay between API calls (default: 1)

Examples:
  %(prog)s --dry-run --version v1.2.3
  %(prog)s --version v1.2.3
  %(prog)s --changelog /path/to/CHANGELOG.md --rate-limit 2
        """
    )
    parser.add_argument('--changelog', metavar='FILE',
                        help='Path to changelog file (default: changelog.md)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Preview changes without actually closing issues')
    parser.add_argument('--version', metavar='VERSION',
                        help='Release version to include in Jira comments')
    parser.add_argument('--jira-url', metavar='URL',
                        help='Jira server URL (default: from JIRA_URL env or https://issues.redhat.com)')
    parser.add_argument('--rate-limit', metavar='N',
                        help='Delay in seconds between API calls (default: 1)')
    return parser


def validate_inputs(cfg: JiraConfig, console: ConsoleLogger) -> bool:
    """Check every input before any network call"""
    if '..' in cfg.changelog_file:
        console.log_error("Invalid file path: directory traversal not allowed", "INPUT")
        return False
    if cfg.version:
        if not VERSION_PATTERN.match(cfg.version):
            console.log_error(f"Invalid version format: {cfg.version} "
                              "(allowed: alphanumeric, dots, dashes, underscores)", "INPUT")
            return False
        if len(cfg.version) > MAX_VERSION_LENGTH:
            console.log_error(f"Version string too long (max {MAX_VERSION_LENGTH} characters)", "INPUT")
            return False
    if not URL_PATTERN.match(cfg.jira_url):
        console.log_error(f"Invalid URL format: {cfg.jira_url}", "INPUT")
        return False
    if not RATE_LIMIT_PATTERN.fullmatch(str(cfg.rate_limit_seconds)):
        console.log_error("Rate limit must be a non-negative integer", "INPUT")
        return False
    if not cfg.api_token:
        console.log_error("JIRA_API_TOKEN environment variable is required", "INPUT")
        console.say("\nPlease set the JIRA_API_TOKEN environment variable:")
        console.say("  export JIRA_API_TOKEN='your-token-here'")
        return False
    return True


def main(argv: List[str] = None, session: requests.Session = None,
         sleep: Callable[[float], None] = time.sleep) -> int:
    load_dotenv()
    args = create_argument_parser().parse_args(argv)

    cfg = JiraConfig()
    if args.changelog is not None:
        cfg.changelog_file = args.changelog
    if args.dry_run:
        cfg.dry_run = True
    if args.version is not None:
        cfg.version = args.version
    if args.jira_url is not None:
        cfg.jira_url = args.jira_url
    if args.rate_limit is not None:
        cfg.rate_limit_seconds = args.rate_limit

    console = ConsoleLogger(setup_logging(cfg.log_level, cfg.log_file))
    if not validate_inputs(cfg, console):
        return 1

    console.say(SEPARATOR)
    console.say("🚀 Jira Issue Closer for Released Changes")
    console.say(SEPARATOR)
    if cfg.dry_run:
        console.log_warn("DRY RUN MODE - No changes will be made")

    console.log_info(f"Reading changelog: {cfg.changelog_file}")
    if not os.path.isfile(cfg.changelog_file):
        console.log_error(f"Changelog file not found: {cfg.changelog_file}")
        return 1
    with open(cfg.changelog_file, encoding='utf-8') as f:
        keys = extract_issue_keys(f.read(), console)

    if not keys:
        console.log_info("No Jira issues found in changelog")
        write_github_summary(CloseStats())
        return 0

    console.say(f"\n📋 Found {len(keys)} unique Jira issue(s):")
    for key in keys:
        console.say(f"  - {key}")

    rate_limit = int(cfg.rate_limit_seconds)
    console.log_info(f"Connected to Jira: {cfg.jira_url}")
    console.log_info(f"Rate limit: {rate_limit}s between API calls")

    console.say(f"\n{SEPARATOR}")
    console.say("🔄 Processing issues...")
    console.say(SEPARATOR)

    client = JiraClient(cfg.jira_url, cfg.api_token, timeout=cfg.request_timeout, session=session)
    closer = IssueCloser(client, dry_run=cfg.dry_run, version=cfg.version,
                         rate_limit_seconds=rate_limit, console=console, sleep=sleep)
    stats = closer.run(keys)

    print_manual_review(stats, console)
    print_summary(stats, cfg.dry_run, console)
    write_github_summary(stats)

    return 1 if stats.failed > 0 else 0


if __name__ == '__main__':
    sys.exit(main())
