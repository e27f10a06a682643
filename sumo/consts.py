# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""sumo constants"""

# Name under which both the keypair and the security group are registered
# with the provider.
KEYPAIR_NAME = 'sumo'
SECURITY_GROUP_NAME = 'sumo'
SECURITY_GROUP_DESCRIPTION = 'Sumo'

SSH_PORT = 22
WORLD_CIDR = '0.0.0.0/0'

INSTANCE_ID_PREFIX = 'i-'
VOLUME_ID_PREFIX = 'vol-'

# The EC2 endpoint is <region>.<EC2_DOMAIN>
EC2_DOMAIN = 'ec2.amazonaws.com'

CONFIG_FILENAME = 'config.yml'
KEYPAIR_FILENAME = 'keypair.pem'
LOG_FILENAME = 'ssh.log'

# chef installation on the instances
CHEF_BIN = '/var/lib/gems/1.8/bin'
CHEF_DIR = '/etc/chef'
COOKBOOKS_DIR = 'chef-cookbooks'
BOOTSTRAP_RECIPE_URL = \
    'http://s3.amazonaws.com/chef-solo/bootstrap-latest.tar.gz'

# File listing the services exposed by a converged host
RESOURCES_FILE = '/root/resources'
