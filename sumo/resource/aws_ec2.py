# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Client of the EC2 control plane: instances, volumes, keypair and firewall."""

import os
import os.path as op
from os import chmod

import boto3
from botocore.exceptions import ClientError

import logging
lgr = logging.getLogger('sumo.resource.aws_ec2')

from .base import Instance, Volume
from .. import consts
from ..dochelpers import exc_str
from ..support.exceptions import ConfigError
from ..support.exceptions import ProviderError
from ..utils import assure_dir

# Provider error codes meaning that what we asked for is already in place
DUPLICATE_GROUP = 'InvalidGroup.Duplicate'
DUPLICATE_PERMISSION = 'InvalidPermission.Duplicate'


def error_code(exc):
    """Return the provider error code of a botocore ClientError"""
    return exc.response.get('Error', {}).get('Code')


class ProviderClient(object):
    """Thin layer over the boto3 EC2 client.

    Every call which fails at the provider is re-raised as ProviderError,
    except for the idempotent `ensure_security_group` and `authorize_ingress`
    which treat "already exists" as success.

    Parameters
    ----------
    access_key_id : str
    secret_access_key : str
    region_name : str
      Region the instances live in, e.g. us-east-1.
    endpoint : str, optional
      Host name of the EC2 API endpoint.  Derived from the region by boto3
      if not given.
    """

    def __init__(self, access_key_id=None, secret_access_key=None,
                 region_name=None, endpoint=None):
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region_name = region_name
        self.endpoint = endpoint
        self._ec2 = None

    @classmethod
    def from_config(cls, config):
        """Create a client for the credentials and zone of a ConfigManager"""
        return cls(
            access_key_id=config.get('access_id'),
            secret_access_key=config.get('access_secret'),
            region_name=config.region,
            endpoint=config.endpoint,
        )

    @property
    def ec2(self):
        if self._ec2 is None:
            lgr.debug("Connecting to EC2 in %s", self.region_name)
            self._ec2 = boto3.client(
                'ec2',
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                region_name=self.region_name,
                endpoint_url='https://%s' % self.endpoint
                if self.endpoint else None,
            )
        return self._ec2

    def _call(self, operation, ignore=(), **kwargs):
        """Invoke `operation` on the EC2 client

        Parameters
        ----------
        operation : str
          Name of the boto3 client method.
        ignore : tuple of str
          Error codes to consider a success.  None is returned for those.
        """
        lgr.log(5, "EC2 %s(%s)", operation, kwargs)
        try:
            return getattr(self.ec2, operation)(**kwargs)
        except ClientError as exc:
            code = error_code(exc)
            if code in ignore:
                lgr.debug("Ignoring %s from %s", code, operation)
                return None
            raise ProviderError(operation, code, exc_str(exc))

    def _paginate(self, operation, key, **kwargs):
        try:
            for page in self.ec2.get_paginator(operation).paginate(**kwargs):
                for item in page.get(key) or []:
                    yield item
        except ClientError as exc:
            raise ProviderError(operation, error_code(exc), exc_str(exc))

    #
    # Instances
    #

    def launch_instance(self, image, size=None, zone=None,
                        key_name=consts.KEYPAIR_NAME,
                        groups=(consts.SECURITY_GROUP_NAME,)):
        """Start a single instance and return its id

        Raises
        ------
        ConfigError
          If no image is given.  No call to the provider is made then.
        """
        if not image:
            raise ConfigError("No AMI selected")
        kwargs = dict(
            ImageId=image,
            MinCount=1,
            MaxCount=1,
            KeyName=key_name,
            SecurityGroups=list(groups),
        )
        if size:
            kwargs['InstanceType'] = size
        if zone:
            kwargs['Placement'] = {'AvailabilityZone': zone}
        result = self._call('run_instances', **kwargs)
        instance_id = result['Instances'][0]['InstanceId']
        lgr.info("Launched instance %s from %s", instance_id, image)
        return instance_id

    def list_instances(self):
        """Return all instances.  An empty list if there are none"""
        return [
            Instance.from_ec2(item)
            for reservation in self._paginate('describe_instances',
                                              'Reservations')
            for item in reservation.get('Instances') or []
        ]

    def terminate_instance(self, instance_id):
        self._call('terminate_instances', InstanceIds=[instance_id])
        lgr.info("Terminating instance %s", instance_id)

    def get_console_output(self, instance_id):
        result = self._call('get_console_output', InstanceId=instance_id)
        return result.get('Output') or ''

    #
    # Volumes
    #

    def list_volumes(self):
        """Return all volumes.  An empty list if there are none"""
        return [Volume.from_ec2(item)
                for item in self._paginate('describe_volumes', 'Volumes')]

    def create_volume(self, size, zone):
        result = self._call('create_volume', AvailabilityZone=zone,
                            Size=int(size))
        lgr.info("Created volume %s of %s GiB in %s",
                 result['VolumeId'], size, zone)
        return result['VolumeId']

    def attach_volume(self, volume_id, instance_id, device):
        self._call('attach_volume', VolumeId=volume_id,
                   InstanceId=instance_id, Device=device)

    def detach_volume(self, volume_id, force=True):
        """Detach a volume.

        With `force` (the default) the volume is detached even while the
        instance may still be writing to it.
        """
        if force:
            lgr.debug("Forcing detachment of %s", volume_id)
        self._call('detach_volume', VolumeId=volume_id, Force=force)

    def delete_volume(self, volume_id):
        self._call('delete_volume', VolumeId=volume_id)

    #
    # Access
    #

    def create_keypair(self, name):
        """Register a new keypair and return its private key material"""
        return self._call('create_key_pair', KeyName=name)['KeyMaterial']

    def ensure_keypair(self, name, key_filename):
        """Return the private key of keypair `name`, creating it if needed

        The key is kept in `key_filename`, readable by the owner only.  If
        that file exists, the provider is not contacted.
        """
        if op.exists(key_filename):
            lgr.debug("Reusing private key file %s", key_filename)
            with open(key_filename) as f:
                return f.read()

        material = self.create_keypair(name)
        assure_dir(op.dirname(key_filename) or os.curdir)
        with open(key_filename, 'w') as key_file:
            key_file.write(material)
        chmod(key_filename, 0o600)
        lgr.info('Created private key file %s', key_filename)
        return material

    def ensure_security_group(self, name,
                              description=consts.SECURITY_GROUP_DESCRIPTION):
        """Create security group `name` unless it exists already"""
        self._call('create_security_group', ignore=(DUPLICATE_GROUP,),
                   GroupName=name, Description=description)

    def authorize_ingress(self, name, port, cidr=consts.WORLD_CIDR,
                          protocol='tcp'):
        """Open `port` of group `name` to `cidr`, unless it is open already"""
        self._call(
            'authorize_security_group_ingress',
            ignore=(DUPLICATE_PERMISSION,),
            GroupName=name,
            IpPermissions=[{
                'IpProtocol': protocol,
                'FromPort': port,
                'ToPort': port,
                'IpRanges': [{'CidrIp': cidr}],
            }],
        )
