"""Engine constants.

Re-exports all constants for convenient importing:
    from fsmdx.constants import DOC_EXTENSIONS, DEFAULT_OUTPUT
"""

from fsmdx.constants.files import *  # noqa: F403
from fsmdx.constants.generation import *  # noqa: F403
