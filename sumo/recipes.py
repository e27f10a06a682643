# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Remote command sequences for bootstrapping chef and preparing volumes.

Every step is either harmless to repeat or guarded by an `unless` test, so
running a whole sequence again on a host where it succeeded is a no-op.
"""

from shlex import quote

from . import consts
from .resource.ssh import Step

CHEF_PACKAGES = [
    'xfsprogs', 'xfsdump', 'xfslibs-dev', 'ruby', 'ruby-dev', 'rubygems',
    'libopenssl-ruby1.8', 'git-core',
]

CLIENT_KEY = '%s/client.pem' % consts.CHEF_DIR
VALIDATION_KEY = '%s/validation.pem' % consts.CHEF_DIR


def bootstrap_steps(cookbooks_url=None):
    """Steps installing the chef client and fetching the cookbooks

    Parameters
    ----------
    cookbooks_url : str, optional
      Git repository with the cookbooks, cloned (or pulled if cloned before)
      into ~/chef-cookbooks.  Without it, the last step is a placeholder:
      cookbooks are then expected to be copied over.
    """
    if cookbooks_url:
        cookbooks = Step(
            "if [ -d {dir} ]; then cd {dir} && git pull; "
            "else git clone {url} {dir}; fi".format(
                dir=consts.COOKBOOKS_DIR, url=quote(cookbooks_url)),
            description="clone or update cookbooks")
    else:
        cookbooks = Step("echo done", description="no cookbooks repository")
    return [
        Step('sudo apt-get update', description="update package index"),
        Step('sudo apt-get autoremove -y',
             description="remove unused packages"),
        Step('sudo apt-get install -y ' + ' '.join(CHEF_PACKAGES),
             unless='test -f /usr/lib/ruby/1.8/net/https.rb',
             description="install chef prerequisites"),
        Step('sudo mkdir %s' % consts.CHEF_DIR,
             unless='test -d %s' % consts.CHEF_DIR,
             description="create chef configuration directory"),
        Step('sudo gem install chef ohai --no-rdoc --no-ri',
             unless='ls -d /var/lib/gems/1.8/gems/chef-* >/dev/null 2>&1',
             description="install chef"),
        cookbooks,
    ]


def install_validation_steps(uploaded='validation.pem'):
    """Steps moving an uploaded validation key into the chef directory"""
    return [Step('sudo mv %s %s/' % (quote(uploaded), consts.CHEF_DIR),
                 description="install validation key")]


def converge_step():
    return Step('sudo %s/chef-client' % consts.CHEF_BIN,
                description="converge")


def first_converge_steps():
    """Steps registering a freshly bootstrapped host with the chef server

    They are all skipped once the host has a client key.  The validation key
    is removed after its first use.
    """
    registered = 'test -f %s' % CLIENT_KEY
    in_cookbooks = 'cd %s && ' % consts.COOKBOOKS_DIR
    return [
        Step(in_cookbooks + 'sudo %s/chef-solo -c config/solo.rb '
             '-j roles/bootstrap.json -r %s'
             % (consts.CHEF_BIN, consts.BOOTSTRAP_RECIPE_URL),
             unless=registered,
             description="bootstrap chef client"),
        Step(in_cookbooks + 'if [ -f config/client.rb ]; '
             'then sudo cp config/client.rb %s/client.rb; fi'
             % consts.CHEF_DIR,
             unless=registered,
             description="install client configuration"),
        Step('sudo %s/chef-client' % consts.CHEF_BIN,
             unless=registered,
             description="register chef client"),
        Step('sudo rm %s' % VALIDATION_KEY,
             unless='test ! -f %s' % VALIDATION_KEY,
             description="remove validation key"),
    ]


def device_path(device):
    """Return /dev/<device> for 'sdf' or '/dev/sdf'"""
    return device if device.startswith('/dev/') else '/dev/' + device


def format_volume_steps(device, mountpoint):
    """Steps making the volume on `device` available at `mountpoint`

    An already partitioned device is mounted as is.  Otherwise a single
    partition spanning the disk is created and formatted with XFS.
    """
    device = device_path(device)
    partition = device + '1'
    mountpoint = quote(mountpoint)
    return [
        Step('sudo mkdir %s' % mountpoint,
             unless='test -d %s' % mountpoint,
             description="create mountpoint"),
        Step("echo ',,L' | sudo sfdisk %s && sudo mkfs.xfs %s"
             % (device, partition),
             unless='test -b %s' % partition,
             description="partition and format %s" % device),
        Step('sudo mount %s %s' % (partition, mountpoint),
             unless='mountpoint -q %s' % mountpoint,
             description="mount %s" % partition),
    ]
