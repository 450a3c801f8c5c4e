import pytest
from kubernetes.client.rest import ApiException

from conftest import FakeCustomObjects
from kflux_scripts.commands import applications, components, integration_tests, mock_components, releases


@pytest.fixture(autouse=True)
def current_namespace(monkeypatch):
    monkeypatch.setattr('kflux_scripts.commands.base.get_current_namespace',
                        lambda kubeconfig_path=None: 'team-ns')


def test_declined_bulk_mock_components_apply_nothing(answers, make_applier, capsys):
    api = FakeCustomObjects()
    asked = answers("15", "n", "n")

    status = mock_components.main(applier=make_applier(api))

    assert status == 0
    assert api.created == []
    assert any("proceed" in q for q in asked)
    assert "Operation cancelled by user" in capsys.readouterr().out


def test_declined_components_never_touch_namespace(answers, make_applier, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("namespace should not be resolved")

    monkeypatch.setattr('kflux_scripts.commands.base.get_current_namespace', fail)
    api = FakeCustomObjects()
    answers("no")
    assert components.main(applier=make_applier(api)) == 0
    assert api.created == []


def test_applications_created_in_confirmed_namespace(answers, make_applier):
    api = FakeCustomObjects()
    answers("y")  # 10 applications is under the safety threshold

    assert applications.main(applier=make_applier(api)) == 0
    assert len(api.created) == 10
    assert {c['namespace'] for c in api.created} == {'team-ns'}


def test_integration_tests_in_replacement_namespace(answers, make_applier):
    api = FakeCustomObjects()
    answers("n", "other-ns")

    assert integration_tests.main(applier=make_applier(api)) == 0
    assert len(api.created) == 3
    assert {c['body']['metadata']['namespace'] for c in api.created} == {'other-ns'}


def test_batch_failure_exits_non_zero_and_stops(answers, make_applier):
    class FailingSecond(FakeCustomObjects):
        def create_namespaced_custom_object(self, group, version, namespace, plural, body, **kwargs):
            if len(self.created) == 1:
                raise ApiException(status=500, reason='InternalError')
            return super().create_namespaced_custom_object(group, version, namespace, plural, body, **kwargs)

    api = FailingSecond()
    answers("y", "y")  # 25 components: confirm gate, accept namespace

    assert components.main(applier=make_applier(api)) == 1
    assert len(api.created) == 1


def test_releases_require_plan_and_snapshot(answers, make_applier):
    api = FakeCustomObjects()
    answers("", "snap", "")
    assert releases.main(applier=make_applier(api)) == 1
    assert api.created == []


def test_releases_created_with_defaults(answers, make_applier, capsys):
    api = FakeCustomObjects()
    answers("plan-x", "snap-y", "", "y")

    assert releases.main(applier=make_applier(api)) == 0
    assert len(api.created) == 5
    body = api.created[0]['body']
    assert body['spec'] == {
        'releasePlan': 'plan-x',
        'snapshot': 'snap-y',
        'data': {'releaseNotes': {
            'references': '',
            'synopsis': 'Automated release 1 of 5',
            'topic': '',
            'description': 'Generated release using kflux-scripts',
        }},
    }
    assert "Successfully processed 5 releases" in capsys.readouterr().out


def test_mock_components_with_status(answers, make_applier):
    api = FakeCustomObjects()
    answers("7", "y", "y")

    assert mock_components.main(applier=make_applier(api)) == 0
    assert len(api.created) == 7
    assert len(api.status_patches) == 7
    # status for index 7 carries the "not installed" message
    assert api.status_patches[6]['body']['status']['message']
    assert api.status_patches[0]['body']['status']['pacRepository'] == 'pac-repo-1'
    assert api.status_patches[0]['name'] == api.created[0]['body']['metadata']['name']


def test_mock_components_status_failure_does_not_stop_batch(answers, make_applier):
    class StatusAlwaysFails(FakeCustomObjects):
        def patch_namespaced_custom_object_status(self, group, version, namespace, plural, name, body):
            raise ApiException(status=404, reason='NotFound')

    api = StatusAlwaysFails()
    answers("3", "y", "y")

    assert mock_components.main(applier=make_applier(api)) == 0
    assert len(api.created) == 3


def test_mock_components_without_status(answers, make_applier):
    api = FakeCustomObjects()
    answers("2", "", "y")

    assert mock_components.main(applier=make_applier(api)) == 0
    assert len(api.created) == 2
    assert api.status_patches == []
    assert api.created[0]["body"]["spec"]["source"]["versions"] == [{"name": "main", "revision": "main"}]
    assert len(api.created[1]["body"]["spec"]["source"]["versions"]) == 2


def test_non_numeric_delay_exits_1_before_prompting(answers, make_applier, monkeypatch, capsys):
    monkeypatch.setenv('KFLUX_DELAY_MS', 'fast')
    api = FakeCustomObjects()
    asked = answers()

    with pytest.raises(SystemExit) as excinfo:
        components.main(applier=make_applier(api))

    assert excinfo.value.code == 1
    assert asked == []
    assert api.created == []
    assert "KFLUX_DELAY_MS must be a non-negative integer, got 'fast'" in capsys.readouterr().out


def test_applications_skip_the_safety_prompt(answers, make_applier):
    api = FakeCustomObjects()
    asked = answers("y")

    assert applications.main(applier=make_applier(api)) == 0
    assert len(asked) == 1
    assert not any("proceed" in q for q in asked)
