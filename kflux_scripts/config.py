#!/usr/bin/env python3
"""
Configuration for the kflux generator and release tooling
All values come from environment variables with sensible defaults
"""

import os
import re
from datetime import datetime
from typing import Optional


DEFAULT_DELAY_MS = 10000
DEFAULT_JIRA_URL = 'https://issues.redhat.com'
DEFAULT_GIST_URL = (
    'https://gist.githubusercontent.com/sahil143/50f50ef0db706fe1190c7ab48268f6a0/raw/'
    '73e080f4d42fc33535884a78d0c3d0dac87573cd/git-pr-changelog.sh'
)


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('true', '1', 'yes')


class ConfigError(ValueError):
    """An environment variable holds an unusable value"""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    if not re.fullmatch(r'[0-9]+', raw):
        raise ConfigError(f"{name} must be a non-negative integer, got '{raw}'")
    return int(raw)


class Config:
    """Configuration shared by the resource generator commands"""
    def __init__(self):
        # Pacing between created resources
        self.delay_ms = _env_int('KFLUX_DELAY_MS', DEFAULT_DELAY_MS)

        # Cluster access
        self.kubeconfig_path: Optional[str] = os.getenv('KUBECONFIG')
        self.k8s_verify_ssl: Optional[bool] = self._get_verify_ssl_setting()

        # Logging
        self.log_file = os.getenv('LOG_FILE', '')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')

    def _get_verify_ssl_setting(self) -> Optional[bool]:
        """Get SSL verification setting from environment"""
        for env_var in ['K8S_VERIFY', 'VERIFY_SSL']:
            val = os.getenv(env_var)
            if val is not None:
                val_lower = val.strip().lower()
                if val_lower in ('true', '1', 'yes'):
                    return True
                if val_lower in ('false', '0', 'no'):
                    return False
        return None  # Not set, keep kubeconfig behaviour


class JiraConfig:
    """Configuration for the Jira issue closer"""
    def __init__(self):
        self.jira_url = os.getenv('JIRA_URL', DEFAULT_JIRA_URL)
        self.api_token = os.getenv('JIRA_API_TOKEN', '')
        self.rate_limit_seconds = os.getenv('RATE_LIMIT_SECONDS', '1')
        self.changelog_file = 'changelog.md'
        self.dry_run = False
        self.version = ''
        self.request_timeout = 30

        self.log_file = os.getenv('LOG_FILE', '')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')


class GitOpsConfig:
    """Configuration for the production bump PR workflow"""
    def __init__(self):
        self.upstream_repo = os.getenv('UPSTREAM_REPO', 'redhat-appstudio/infra-deployments')
        self.fork_repo = os.getenv('FORK_REPO', 'sahil143/infra-deployments')
        self.kui_repo = os.getenv('KUI_REPO', 'konflux-ci/konflux-ui')

        # Kustomization files holding the deployed UI SHA
        self.prod_file = os.getenv('PROD_FILE', 'components/konflux-ui/production/base/kustomization.yaml')
        self.stg_file = os.getenv('STG_FILE', 'components/konflux-ui/staging/base/kustomization.yaml')
        self.prod_sha_line = 14
        self.stg_sha_line = 15

        # Remote changelog generator, tried before the git log fallback
        self.gist_url = os.getenv('GIST_URL', DEFAULT_GIST_URL)

        timestamp = datetime.now().strftime('%Y%m%d-%H%M%S')
        self.branch_name = os.getenv('BRANCH_NAME', f'auto/changelog-{timestamp}')
        self.pr_title = os.getenv('PR_TITLE', 'chore: Konflux UI changes (staging vs production)')
        self.dry_run = _env_flag('DRY_RUN')

        self.log_file = os.getenv('LOG_FILE', '')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')
