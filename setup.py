#!/usr/bin/env python3
from __future__ import annotations

import inspect
import pathlib
import setuptools
import sys

__minver__ = '3.9'
__slogan__ = 'A reader for DXIL runtime data (RDAT) and the shader library reflection it encodes.'
__topics__ = [
    'Development Status :: 3 - Alpha',
    'Operating System :: OS Independent',
    'Programming Language :: Python :: 3 :: Only',
    'Topic :: Multimedia :: Graphics :: 3D Rendering',
    'Topic :: Software Development :: Disassemblers',
]
__requires__ = [
    'orjson',
    'colorama>=0.4.6',
]
__extras__ = {
    'test': ['pytest'],
    'dev': ['flake8'],
}


def get_config():
    sys.path.insert(0, str(pathlib.Path(__file__).parent.absolute()))

    import rdat

    def get_setup_common() -> dict:
        return dict(
            version=rdat.__version__,
            long_description=inspect.cleandoc(rdat.__doc__),
            description=__slogan__,
            long_description_content_type='text/markdown',
            python_requires=F'>={__minver__}',
            classifiers=__topics__,
        )

    console_scripts = ['rdat-dump=rdat.dump:run']

    config = get_setup_common()
    config.update(
        name=rdat.__distribution__,
        packages=setuptools.find_packages(include=('rdat*',)),
        install_requires=__requires__,
        extras_require=__extras__,
        entry_points={'console_scripts': console_scripts},
    )

    return config


if __name__ == '__main__':
    setuptools.setup(**get_config())
