# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Records of provider-owned instances and volumes."""

import attr

from ..utils import attrib


@attr.s(frozen=True)
class Instance(object):
    """A snapshot of an EC2 instance as reported by the provider"""

    instance_id = attrib(default=attr.NOTHING, doc="Provider id (i-...)")
    status = attrib(doc="State name, e.g. pending, running, terminated")
    hostname = attrib(doc="Public DNS name, None until assigned")
    local_dns = attrib(doc="Private DNS name")
    private_ip = attrib(doc="Private IP address, None until assigned")

    @classmethod
    def from_ec2(cls, item):
        """Build an Instance from an item of describe_instances' output"""
        return cls(
            instance_id=item['InstanceId'],
            status=item.get('State', {}).get('Name'),
            # EC2 reports an empty string while the name is not assigned
            hostname=item.get('PublicDnsName') or None,
            local_dns=item.get('PrivateDnsName') or None,
            private_ip=item.get('PrivateIpAddress') or None,
        )

    def as_dict(self):
        return attr.asdict(self)


@attr.s(frozen=True)
class Volume(object):
    """A snapshot of an EBS volume as reported by the provider"""

    volume_id = attrib(default=attr.NOTHING, doc="Provider id (vol-...)")
    size = attrib(doc="Size in GiB")
    status = attrib(doc="State name, e.g. available, in-use, deleting")
    device = attrib(default='', doc="Device of the first attachment")
    instance_id = attrib(default='',
        doc="Instance of the first attachment")

    @classmethod
    def from_ec2(cls, item):
        """Build a Volume from an item of describe_volumes' output

        Missing attachment information results in empty strings.
        """
        attachments = item.get('Attachments') or [{}]
        attachment = attachments[0]
        return cls(
            volume_id=item['VolumeId'],
            size=item.get('Size'),
            status=item.get('State'),
            device=attachment.get('Device', ''),
            instance_id=attachment.get('InstanceId', ''),
        )

    def as_dict(self):
        return attr.asdict(self)
