# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##

from unittest.mock import patch

import pytest

import sumo
from ..main import main
from ...manager import Manager
from ...resource.base import Instance, Volume
from ...tests.fixtures import FakeExecutor
from ...tests.fixtures import FakeProvider
from ...utils import swallow_logs


@pytest.fixture
def manager(config):
    provider = FakeProvider(
        instances=[
            Instance('i-abc123', status='running', hostname='h.example.com',
                     private_ip='10.0.0.1'),
            Instance('i-def456', status='pending'),
        ],
        volumes=[
            Volume('vol-1', size=8, status='in-use', device='/dev/sdf',
                   instance_id='i-abc123'),
            Volume('vol-2', size=2, status='deleting'),
        ])
    executor = FakeExecutor(files={'/root/resources': 'http://localhost/\n'})
    return Manager(config, provider=provider, executor=executor)


def run_main(args, manager, capsys):
    ret = main(args, manager=manager)
    return ret, capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as cm:
        main(['--version'])
    assert cm.value.code == 0
    assert sumo.__version__ in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 2
    assert 'usage' in capsys.readouterr().out


def test_list(manager, capsys):
    ret, out = run_main(['list'], manager, capsys)
    assert ret == 0
    lines = out.splitlines()
    assert len(lines) == 2
    assert lines[0].split() == ['i-abc123', '10.0.0.1', 'running',
                                'h.example.com']
    ret, out = run_main(['list', '--status', 'pending'], manager, capsys)
    assert out.split() == ['i-def456', '-', 'pending']


def test_info(manager, capsys):
    ret, out = run_main(['info', 'abc123'], manager, capsys)
    assert ret == 0
    assert 'hostname: h.example.com' in out
    assert 'volume: vol-1 /dev/sdf' in out


def test_unknown_instance(manager, capsys):
    with swallow_logs() as cml:
        ret, _ = run_main(['info', 'i-nope'], manager, capsys)
        assert "No instance matches 'i-nope'" in cml.out
    assert ret == 1


def test_volumes(manager, capsys):
    _, out = run_main(['volumes'], manager, capsys)
    assert 'vol-1' in out
    assert 'vol-2' not in out
    _, out = run_main(['volumes', '--all'], manager, capsys)
    assert 'vol-2' in out


def test_volume_commands(manager, capsys):
    provider = manager.provider
    ret, out = run_main(['create-volume', '4'], manager, capsys)
    assert ret == 0
    volume_id = out.strip()
    assert provider.calls[-1] == ('create_volume', 4, 'us-west-2b')
    manager.inventory.refresh_volumes()

    run_main(['attach', volume_id, 'abc123', '/dev/sdg'], manager, capsys)
    assert provider.calls[-1] == ('attach_volume', volume_id, 'i-abc123',
                                  '/dev/sdg')
    run_main(['detach', volume_id], manager, capsys)
    assert provider.calls[-1] == ('detach_volume', volume_id, True)
    run_main(['detach', '--no-force', volume_id], manager, capsys)
    assert provider.calls[-1] == ('detach_volume', volume_id, False)
    run_main(['destroy-volume', volume_id], manager, capsys)
    assert provider.calls[-1] == ('delete_volume', volume_id)

    run_main(['format-volume', 'i-abc123', 'sdg', '/data'], manager, capsys)
    assert manager.executor.commands[-1] == (
        'h.example.com', 'sudo mount /dev/sdg1 /data')


def test_terminate(manager, capsys):
    ret, out = run_main(['terminate', 'h.example.com'], manager, capsys)
    assert ret == 0
    assert out == 'i-abc123 terminated\n'


def test_console_and_resources(manager, capsys):
    _, out = run_main(['console', 'i-abc123'], manager, capsys)
    assert out == 'console of i-abc123\n'
    _, out = run_main(['resources', 'i-abc123'], manager, capsys)
    assert out == 'http://h.example.com/\n'


@pytest.mark.parametrize("args", [
    ['format-volume', 'i-def456', 'sdf', '/data'],
    ['resources', 'i-def456'],
])
def test_pending_instance_has_no_host(manager, capsys, args):
    with swallow_logs() as cml:
        ret, out = run_main(args, manager, capsys)
        assert "Instance i-def456 has no hostname yet (pending)" in cml.out
    assert ret == 1
    assert out == ''
    assert manager.executor.commands == []
    assert manager.executor.transfers == []


def test_launch(manager, capsys):
    with patch.object(manager.poller, 'wait_for_hostname',
                      return_value='new.example.com'):
        ret, out = run_main(['launch'], manager, capsys)
    assert ret == 0
    instance_id, hostname = out.split()
    assert instance_id.startswith('i-')
    assert hostname == 'new.example.com'


def test_launch_with_role(manager, capsys):
    with patch.object(manager.poller, 'wait_for_private_ip',
                      return_value='10.0.0.9'), \
            patch.object(manager.poller, 'wait_for_shell_reachable',
                         return_value=True), \
            patch('sumo.workflow.Runner') as runner:
        ret, out = run_main(['launch', '--role', 'web', '--private-ip'],
                            manager, capsys)
    assert ret == 0
    assert out.splitlines()[-1] == '10.0.0.9 provisioned'
    runner.return_value.run.assert_called_once()


def test_wait_ssh_unreachable(manager, capsys):
    with patch.object(manager.poller, 'wait_for_shell_reachable',
                      return_value=False):
        ret, out = run_main(['wait-ssh', 'abc123'], manager, capsys)
    assert ret == 1
    assert out == 'h.example.com unreachable\n'


def test_bootstrap_failure(manager, capsys):
    manager.executor.fail_on = 'apt-get update'
    with swallow_logs() as cml:
        ret, _ = run_main(['bootstrap', 'abc123'], manager, capsys)
        assert 'failed on h.example.com' in cml.out
    assert ret == 1
