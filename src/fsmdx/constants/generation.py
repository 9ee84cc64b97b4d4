"""Code generation constants.

Names used inside generated modules. Generated code only ever imports
fsmdx.runtime, so these are the whole contract between generator and
runtime.
"""

# =============================================================================
# Output Groups
# =============================================================================
# Collections without an explicit `output` are written to this group.
# Companion frontmatter modules and type stubs are derived from the group
# module name.

DEFAULT_OUTPUT = "index"
FM_MODULE_SUFFIX = "_fm"
FM_DATA_SUFFIX = "_data"
STUB_SUFFIX = ".pyi"
MODULE_SUFFIX = ".py"

# =============================================================================
# Generated Module Bindings
# =============================================================================

GENERATED_HEADER = "# Generated by fsmdx. Do not edit."
RUNTIME_MODULE = "fsmdx.runtime"
RUNTIME_NAME = "_runtime"
RUNTIME_ASYNC_NAME = "_runtime_async"
SOURCE_NAME = "_source"
COMPANION_NAME = "_fm"

# Frontmatter keys that carry file location tokens in companion modules.
PART_KEY = "_part"
DIR_KEY = "_dir"
