# minipack Bundle Runtime
"""
The loader embedded at the top of every bundle.

It lives in real JavaScript files so it can be read, linted and tested on its
own; the files are concatenated into a single snippet at build time.
"""

import os

# Order matters - later files may use what earlier ones declare
RUNTIME_FILES = [
    'loader.js',  # modules/cache registry, register(), require()
]


def get_runtime():
    """
    Read and concatenate the runtime files into the snippet placed in front
    of the registered modules. The text is constant for a given install, so
    bundles built from the same input are byte-identical.
    """
    runtime_dir = os.path.dirname(__file__)

    parts = []
    for name in RUNTIME_FILES:
        path = os.path.join(runtime_dir, name)
        with open(path, 'r', encoding='utf-8') as f:
            parts.append(f.read().strip('\n'))

    return '\n\n'.join(parts) + '\n'
