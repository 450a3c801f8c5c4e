import random
import string

import pytest
from kubernetes import config

from kflux_scripts import utils
from kflux_scripts.utils import (
    check_safety_thresholds,
    get_current_namespace,
    prompt_for_count,
    prompt_for_namespace,
    random_suffix,
)

ALLOWED = set(string.ascii_lowercase + string.digits)


@pytest.mark.parametrize("min_length,max_length", [(0, 40), (5, 8), (3, 3), (0, 0)])
def test_random_suffix_length_and_alphabet(min_length, max_length):
    rng = random.Random(1234)
    for _ in range(200):
        suffix = random_suffix(min_length, max_length, rng=rng)
        assert min_length <= len(suffix) <= max_length
        assert set(suffix) <= ALLOWED


def test_random_suffix_default_bounds():
    for _ in range(100):
        assert 0 <= len(random_suffix()) <= 40


def test_random_suffix_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        random_suffix(8, 5)


@pytest.mark.parametrize("count", [1, 5, 10])
def test_safety_gate_passes_small_batches_without_prompting(count, answers):
    asked = answers()
    assert check_safety_thresholds(count) is True
    assert asked == []


@pytest.mark.parametrize("reply,expected", [
    ("y", True),
    ("Y", True),
    (" y ", True),
    ("n", False),
    ("", False),
    ("yes", False),
    ("N", False),
])
def test_safety_gate_requires_y_above_threshold(reply, expected, answers, capsys):
    asked = answers(reply)
    assert check_safety_thresholds(11, 'releases', delay_ms=10000) is expected
    assert len(asked) == 1
    out = capsys.readouterr().out
    assert "You are about to create 11 releases." in out
    assert "Overload the API server" in out
    assert "10 seconds" in out


def test_safety_gate_recommends_longer_delay(answers, capsys):
    answers("n")
    check_safety_thresholds(50, delay_ms=2000)
    out = capsys.readouterr().out
    assert "2 seconds" in out
    assert "Recommended: Use a delay of at least 10 seconds" in out


def test_prompt_for_namespace_accepts_current(answers):
    answers("y")
    assert prompt_for_namespace("team-ns") == "team-ns"


def test_prompt_for_namespace_reads_replacement(answers):
    answers("n", "  other-ns  ")
    assert prompt_for_namespace("team-ns") == "other-ns"


@pytest.mark.parametrize("reply,expected", [
    ("", 25),
    ("7", 7),
    ("  12 ", 12),
    ("0", 25),
    ("-3", 25),
    ("abc", 25),
])
def test_prompt_for_count(reply, expected, answers):
    answers(reply)
    assert prompt_for_count("How many?", 25) == expected


def test_current_namespace_from_active_context(monkeypatch):
    def fake_contexts(config_file=None):
        active = {'name': 'ctx', 'context': {'cluster': 'c', 'namespace': 'user-tenant'}}
        return [active], active

    monkeypatch.setattr(utils.config, 'list_kube_config_contexts', fake_contexts)
    assert get_current_namespace() == 'user-tenant'


def test_current_namespace_without_namespace_is_default(monkeypatch):
    active = {'name': 'ctx', 'context': {'cluster': 'c'}}
    monkeypatch.setattr(utils.config, 'list_kube_config_contexts',
                        lambda config_file=None: ([active], active))
    assert get_current_namespace() == 'default'


def test_current_namespace_falls_back_on_missing_kubeconfig(monkeypatch):
    def broken(config_file=None):
        raise config.ConfigException("Invalid kube-config file. No configuration found.")

    monkeypatch.setattr(utils.config, 'list_kube_config_contexts', broken)
    assert get_current_namespace() == 'default'


def test_current_namespace_reads_real_kubeconfig_file(tmp_path):
    kubeconfig = tmp_path / 'config'
    kubeconfig.write_text(
        """
apiVersion: v1
kind: Config
clusters:
- name: c
  cluster:
    server: https://127.0.0.1:6443
users:
- name: u
  user:
    token: abc
contexts:
- name: ctx
  context:
    cluster: c
    user: u
    namespace: from-file
current-context: ctx
"""
    )
    assert get_current_namespace(str(kubeconfig)) == 'from-file'
