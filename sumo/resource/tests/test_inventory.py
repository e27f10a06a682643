# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##

import pytest

from ..base import Instance, Volume
from ..inventory import InventoryCache
from ...tests.fixtures import FakeProvider


@pytest.fixture
def inventory():
    provider = FakeProvider(
        instances=[
            Instance('i-abc123', status='running',
                     hostname='ec2-1-2-3-4.compute-1.amazonaws.com',
                     private_ip='10.0.0.1'),
            Instance('i-def456', status='pending'),
            Instance('i-0000ff', status='terminated'),
        ],
        volumes=[
            Volume('vol-1111', size=8, status='available'),
            Volume('vol-2222', size=16, status='in-use', device='/dev/sdf',
                   instance_id='i-abc123'),
            Volume('vol-3333', size=1, status='deleting'),
        ])
    return InventoryCache(provider)


def test_nothing_fetched_until_used(inventory):
    assert not inventory.populated
    assert inventory.provider.calls == []
    inventory.refresh()
    assert inventory.populated
    assert inventory.provider.calls == [('list_instances',),
                                        ('list_volumes',)]


def test_snapshot_is_reused(inventory):
    inventory.instances
    inventory.instances
    inventory.find('abc123')
    assert inventory.provider.calls == [('list_instances',)]
    inventory.invalidate()
    assert not inventory.populated
    inventory.instances
    assert len(inventory.provider.calls) == 2


@pytest.mark.parametrize("ref", [
    "i-abc123", "abc123", "I-ABC123 ", "  abc123\n",
    "ec2-1-2-3-4.compute-1.amazonaws.com",
    "EC2-1-2-3-4.compute-1.amazonaws.com",
])
def test_find(inventory, ref):
    assert inventory.find(ref).instance_id == 'i-abc123'


@pytest.mark.parametrize("ref", ["", None, "i-nope", "abc", "123"])
def test_find_nothing(inventory, ref):
    assert inventory.find(ref) is None


def test_by_status(inventory):
    assert [i.instance_id for i in inventory.running()] == ['i-abc123']
    assert [i.instance_id for i in inventory.pending()] == ['i-def456']
    assert [i.instance_id for i in inventory.list_by_status('terminated')] \
        == ['i-0000ff']
    assert inventory.list_by_status('stopped') == []


def test_find_volume(inventory):
    assert inventory.find_volume('vol-1111').size == 8
    assert inventory.find_volume(' VOL-2222').device == '/dev/sdf'
    assert inventory.find_volume('3333').status == 'deleting'
    assert inventory.find_volume('vol-4444') is None
    assert inventory.find_volume('') is None


def test_volume_filters(inventory):
    ids = lambda vs: [v.volume_id for v in vs]
    assert ids(inventory.available_volumes()) == ['vol-1111']
    assert ids(inventory.attached_volumes()) == ['vol-2222']
    assert ids(inventory.nondestroyed_volumes()) == ['vol-1111', 'vol-2222']
    assert ids(inventory.volumes_of('i-abc123')) == ['vol-2222']
    assert inventory.volumes_of('i-def456') == []


def test_empty_account():
    inventory = InventoryCache(FakeProvider())
    assert inventory.instances == []
    assert inventory.volumes == []
    assert inventory.find('i-abc123') is None
    assert inventory.available_volumes() == []


def test_destroyed_volume_after_refresh():
    provider = FakeProvider()
    inventory = InventoryCache(provider)
    volume_id = provider.create_volume(2, 'us-east-1d')
    assert inventory.find_volume(volume_id).status == 'available'
    provider.delete_volume(volume_id)
    # stale until refreshed
    assert inventory.find_volume(volume_id).status == 'available'
    inventory.refresh_volumes()
    assert inventory.find_volume(volume_id).status == 'deleting'
    assert inventory.nondestroyed_volumes() == []
