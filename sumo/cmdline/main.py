# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
""""""

__docformat__ = 'restructuredtext'

import logging
lgr = logging.getLogger('sumo.cmdline')

lgr.log(5, "Importing cmdline.main")

import argparse
import sys

import sumo
from ..config import ConfigManager
from ..dochelpers import exc_str
from ..log import LoggerHelper
from ..manager import Manager
from ..support.exceptions import CommandError
from ..support.exceptions import ConfigError
from ..support.exceptions import InvalidArgument
from ..support.exceptions import ProviderError
from ..support.exceptions import ResourceNotFoundError
from ..support.exceptions import TransferError
from ..support.exceptions import WaitCancelledError
from ..support.exceptions import WaitTimeoutError
from ..support.exceptions import WorkflowError

# Failures which are reported without a traceback
KNOWN_ERRORS = (
    CommandError, ConfigError, InvalidArgument, ProviderError,
    ResourceNotFoundError, TransferError, WaitCancelledError,
    WaitTimeoutError, WorkflowError,
)

INSTANCE_TEMPLATE = '{:<12} {:<20} {:<10} {}'
VOLUME_TEMPLATE = '{:<14} {:>6} {:<10} {:<12} {}'


#
# Commands
#

def cmd_launch(manager, args):
    workflow = manager.workflow()
    instance_id = workflow.launch()
    print(instance_id)
    if args.role:
        state = workflow.provision(args.role, private_ip=args.private_ip)
        print("%s %s" % (workflow.hostname, state))
        return 0 if state == 'provisioned' else 1
    print(workflow.wait_for_network(private_ip=args.private_ip))
    return 0


def cmd_list(manager, args):
    instances = manager.inventory.instances
    if args.status:
        instances = manager.inventory.list_by_status(args.status)
    for instance in instances:
        print(INSTANCE_TEMPLATE.format(
            instance.instance_id, instance.private_ip or '-',
            instance.status, instance.hostname or ''))
    return 0


def cmd_info(manager, args):
    instance = manager.get_instance(args.ref)
    for key, value in sorted(instance.as_dict().items()):
        print("%s: %s" % (key, value if value is not None else ''))
    for volume in manager.inventory.volumes_of(instance.instance_id):
        print("volume: %s %s" % (volume.volume_id, volume.device))
    return 0


def cmd_wait_ssh(manager, args):
    instance = manager.get_instance(args.ref)
    workflow = manager.workflow(instance_id=instance.instance_id,
                                hostname=instance.hostname)
    if not workflow.hostname:
        workflow.wait_for_network()
    reachable = workflow.wait_for_shell()
    print("%s %s" % (workflow.hostname,
                     "reachable" if reachable else "unreachable"))
    return 0 if reachable else 1


def cmd_bootstrap(manager, args):
    manager.workflow_for(args.ref).bootstrap()
    return 0


def cmd_role(manager, args):
    manager.workflow_for(args.ref).apply_role(args.role)
    return 0


def cmd_console(manager, args):
    instance = manager.get_instance(args.ref)
    print(manager.console_output(instance.instance_id))
    return 0


def cmd_terminate(manager, args):
    instance = manager.get_instance(args.ref)
    manager.terminate(instance.instance_id)
    print("%s terminated" % instance.instance_id)
    return 0


def get_hostname(manager, ref):
    """Return the hostname of instance `ref`, which must have one already"""
    instance = manager.get_instance(ref)
    if not instance.hostname:
        raise WorkflowError(
            "Instance %s has no hostname yet (%s)"
            % (instance.instance_id, instance.status))
    return instance.hostname


def cmd_resources(manager, args):
    for line in manager.resources(get_hostname(manager, args.ref)):
        print(line)
    return 0


def cmd_volumes(manager, args):
    inventory = manager.inventory
    volumes = inventory.volumes if args.all \
        else inventory.nondestroyed_volumes()
    for volume in volumes:
        print(VOLUME_TEMPLATE.format(
            volume.volume_id, volume.size, volume.status,
            volume.instance_id, volume.device))
    return 0


def cmd_create_volume(manager, args):
    print(manager.volumes.create(args.size))
    return 0


def cmd_attach(manager, args):
    volume = manager.get_volume(args.volume)
    instance = manager.get_instance(args.ref)
    manager.volumes.attach(volume.volume_id, instance.instance_id,
                           args.device)
    return 0


def cmd_detach(manager, args):
    volume = manager.get_volume(args.volume)
    manager.volumes.detach(volume.volume_id, force=not args.no_force)
    return 0


def cmd_format_volume(manager, args):
    manager.volumes.format(get_hostname(manager, args.ref), args.device,
                           args.mountpoint)
    return 0


def cmd_destroy_volume(manager, args):
    volume = manager.get_volume(args.volume)
    manager.volumes.destroy(volume.volume_id)
    return 0


#
# Parser
#

def setup_parser():
    lgr.log(5, "Starting to setup_parser")
    parser = argparse.ArgumentParser(
        prog='sumo',
        description="Launch EC2 instances and volumes, and converge them "
                    "with chef.")
    parser.add_argument(
        '--version', action='version',
        version='sumo %s' % sumo.__version__)
    parser.add_argument(
        "-c", "--config", metavar="CONFIG",
        help="""path to the sumo configuration file.  By default config.yml
        within the sumo directory ($SUMO_DIR or the user configuration
        directory).""")
    parser.add_argument(
        '-l', '--log-level', dest='log_level', metavar='LEVEL',
        help="""level of verbosity.  Integers provide even more debugging
        information.  Overrides SUMO_LOGLEVEL.""")

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    def add(name, func, help_):
        subparser = subparsers.add_parser(name, help=help_)
        subparser.set_defaults(func=func)
        return subparser

    p = add('launch', cmd_launch,
            "launch an instance and wait for its hostname")
    p.add_argument('--role', help="bootstrap chef and apply ROLE")
    p.add_argument('--private-ip', action='store_true',
                   help="use the private IP instead of the hostname")

    p = add('list', cmd_list, "list instances")
    p.add_argument('--status', help="only instances in this state")

    p = add('info', cmd_info, "show an instance")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('wait-ssh', cmd_wait_ssh,
            "wait until an instance accepts SSH sessions")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('bootstrap', cmd_bootstrap, "install chef on an instance")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('role', cmd_role, "apply a chef role to an instance")
    p.add_argument('ref', metavar='INSTANCE')
    p.add_argument('role')

    p = add('console', cmd_console, "show console output of an instance")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('terminate', cmd_terminate, "terminate an instance")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('resources', cmd_resources,
            "list services provided by an instance")
    p.add_argument('ref', metavar='INSTANCE')

    p = add('volumes', cmd_volumes, "list volumes")
    p.add_argument('-a', '--all', action='store_true',
                   help="include volumes being deleted")

    p = add('create-volume', cmd_create_volume, "create a volume")
    p.add_argument('size', type=int, help="size in GiB")

    p = add('attach', cmd_attach, "attach a volume to an instance")
    p.add_argument('volume')
    p.add_argument('ref', metavar='INSTANCE')
    p.add_argument('device', help="e.g. /dev/sdf")

    p = add('detach', cmd_detach, "detach a volume")
    p.add_argument('volume')
    p.add_argument('--no-force', action='store_true',
                   help="do not force detachment of a volume in use")

    p = add('format-volume', cmd_format_volume,
            "partition, format and mount an attached volume")
    p.add_argument('ref', metavar='INSTANCE')
    p.add_argument('device', help="e.g. sdf")
    p.add_argument('mountpoint')

    p = add('destroy-volume', cmd_destroy_volume, "delete a volume")
    p.add_argument('volume')

    lgr.log(5, "Finished setup_parser")
    return parser


def main(args=None, manager=None):
    lgr.log(5, "Starting main(%r)", args)
    parser = setup_parser()
    cmdlineargs = parser.parse_args(args)

    if cmdlineargs.log_level:
        LoggerHelper().set_level(cmdlineargs.log_level)

    if not getattr(cmdlineargs, 'func', None):
        parser.print_usage()
        lgr.info("No command given, returning")
        return 2

    try:
        if manager is None:
            manager = Manager(ConfigManager(filename=cmdlineargs.config))
        ret = cmdlineargs.func(manager, cmdlineargs)
    except KNOWN_ERRORS as exc:
        lgr.error(str(exc))
        lgr.debug("Failure details: %s", exc_str(exc, limit=5))
        return 1
    except KeyboardInterrupt:
        lgr.error("Interrupted")
        return 3
    return ret


if __name__ == '__main__':
    sys.exit(main())
