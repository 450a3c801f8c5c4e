import random

import pytest

from conftest import FakeCustomObjects
from kflux_scripts.applier import ResourceApplier
from kflux_scripts.materializer import materialize
from kflux_scripts.templates import APPLICATION, INTEGRATION_TEST_SCENARIO, MOCK_COMPONENT


def _apps(count, namespace='ns'):
    return materialize(APPLICATION, range(1, count + 1), namespace, name_for=lambda i: f"app-{i}")


def test_create_resource_success(make_applier, capsys):
    api = FakeCustomObjects()
    result = make_applier(api).create_resource(_apps(1)[0], 'application')

    assert result.success
    assert result.name == 'app-1'
    call = api.created[0]
    assert call['group'] == 'appstudio.redhat.com'
    assert call['version'] == 'v1alpha1'
    assert call['plural'] == 'applications'
    assert call['namespace'] == 'ns'
    assert call['field_validation'] == 'Ignore'
    assert "✓ Created application: app-1" in capsys.readouterr().out


def test_integration_test_scenario_coordinates(make_applier):
    api = FakeCustomObjects()
    resource = materialize(INTEGRATION_TEST_SCENARIO, [5], 'ns', name_for=lambda i: f"it-{i}")[0]
    make_applier(api).create_resource(resource, 'integrationtest')
    assert api.created[0]['version'] == 'v1beta1'
    assert api.created[0]['plural'] == 'integrationtestscenarios'


def test_existing_resource_is_patched(make_applier):
    api = FakeCustomObjects(conflict_names={'app-1'})
    result = make_applier(api).create_resource(_apps(1)[0], 'application')
    assert result.success
    assert api.created == []
    assert api.patched[0]['name'] == 'app-1'


def test_create_failure_reports_name_and_error(make_applier, capsys):
    api = FakeCustomObjects(fail_names={'app-1'})
    result = make_applier(api).create_resource(_apps(1)[0], 'application')
    assert not result.success
    assert 'Forbidden' in result.error
    assert "✗ Failed to create application app-1" in capsys.readouterr().out


def test_apply_all_stops_at_first_failure(make_applier):
    api = FakeCustomObjects(fail_names={'app-3'})
    batch = make_applier(api).apply_all(_apps(5), 'application')

    assert not batch.ok
    assert batch.requested == 5
    assert batch.created == 2
    assert [r.name for r in batch.results] == ['app-1', 'app-2', 'app-3']
    assert batch.failed.name == 'app-3'
    assert [c['body']['metadata']['name'] for c in api.created] == ['app-1', 'app-2']


def test_apply_all_sleeps_after_each_success_only():
    api = FakeCustomObjects(fail_names={'app-2'})
    sleeps = []
    applier = ResourceApplier(api, delay_ms=1000, sleep=sleeps.append, rng=random.Random(7))
    applier.apply_all(_apps(3), 'application')
    assert len(sleeps) == 1


def test_delay_bounds():
    applier = ResourceApplier(FakeCustomObjects(), delay_ms=10000, rng=random.Random(42))
    for _ in range(500):
        delay = applier.next_delay()
        assert 0.1 <= delay <= 20.0


def test_zero_delay_never_sleeps():
    sleeps = []
    applier = ResourceApplier(FakeCustomObjects(), delay_ms=0, sleep=sleeps.append)
    applier.apply_all(_apps(3), 'application')
    assert sleeps == []


def test_after_create_hook_runs_for_created_resources(make_applier):
    api = FakeCustomObjects()
    seen = []
    make_applier(api).apply_all(_apps(3), 'application',
                                after_create=lambda resource, pos: seen.append((resource['metadata']['name'], pos)))
    assert seen == [('app-1', 0), ('app-2', 1), ('app-3', 2)]


def test_patch_status_success(make_applier, capsys):
    api = FakeCustomObjects()
    result = make_applier(api).patch_status('comp-1', 'ns', {'message': ''})
    assert result.success
    call = api.status_patches[0]
    assert call['group'] == 'kflux.dev'
    assert call['plural'] == MOCK_COMPONENT.plural
    assert call['body'] == {'status': {'message': ''}}
    assert "✓ Patched status: comp-1" in capsys.readouterr().out


def test_patch_status_failure_is_not_fatal(make_applier, capsys):
    api = FakeCustomObjects(status_fail_names={'comp-1'})
    result = make_applier(api).patch_status('comp-1', 'ns', {})
    assert not result.success
    assert "✗ Failed to patch status for comp-1" in capsys.readouterr().out


def test_unknown_kind_is_reported_as_failure(make_applier):
    resource = {'apiVersion': 'v1', 'kind': 'Widget', 'metadata': {'name': 'w', 'namespace': 'ns'}}
    result = make_applier(FakeCustomObjects()).create_resource(resource)
    assert not result.success
    assert 'Widget' in result.error


@pytest.mark.parametrize("count", [1, 4])
def test_apply_all_success_batch(make_applier, count):
    batch = make_applier(FakeCustomObjects()).apply_all(_apps(count), 'application')
    assert batch.ok
    assert batch.created == count


def test_mock_component_coordinates_come_from_its_template(make_applier):
    api = FakeCustomObjects()
    resource = materialize(MOCK_COMPONENT, [1], 'ns', name_for=lambda i: f"mock-{i}")[0]

    assert make_applier(api).create_resource(resource, MOCK_COMPONENT.label).success
    call = api.created[0]
    assert (call['group'], call['version'], call['plural']) == ('kflux.dev', 'v1alpha1', 'components')


def test_known_kind_with_foreign_api_version_is_rejected(make_applier):
    resource = APPLICATION.render()
    resource['apiVersion'] = 'example.com/v1'
    resource['metadata'].update(name='app-x', namespace='ns')

    result = make_applier(FakeCustomObjects()).create_resource(resource, 'application')

    assert not result.success
    assert 'example.com/v1 Application' in result.error
