import os
from setuptools import setup, find_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Intended Audience :: Education',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Communications :: File Sharing'
]

pkgdir = os.path.dirname(os.path.abspath(__file__))
srcdir = os.path.join(pkgdir, 'python')

def get_version():
    out = "dev"
    versfile = os.path.join(os.environ.get('PACKAGE_DIR', pkgdir), 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    else:
        out = "(unknown)"
    return out

def write_version_mod(version):
    versmodf = os.path.join(srcdir, "collabfolders", "version.py")
    with open(versmodf, 'w') as fd:
        fd.write('"""')
        fd.write("""
An identification of the package version.  Note that this module file gets
(over-) written by the build process.
""")
        fd.write('"""\n\n')
        fd.write('__version__ = "')
        fd.write(version)
        fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version())
        _build.run(self)

setup(name='collabfolders',
      version=get_version(),
      description="collabfolders: provisioning of shared course folders on an ownCloud server",
      url='https://github.com/learnweb/moodle-mod_collaborativefolders',
      python_requires='>=3.8',
      package_dir={'': 'python'},
      packages=find_packages(where='python', include=['collabfolders', 'collabfolders.*']),
      install_requires=[
          'requests',
          'webdavclient3',
          'lxml',
          'PyYAML',
          'PyJWT',
          'pymongo'
      ],
      extras_require={
          'test': ['pytest']
      },
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)
