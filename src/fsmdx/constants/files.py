"""File classification and discovery constants.

These settings decide which files belong to which kind of collection and
how localized content directories are interpreted.
"""

# =============================================================================
# Classification
# =============================================================================
# Files are classified by extension alone. Documents carry a frontmatter
# header and a body for the compiler; metadata files are plain structured
# data (ordering, titles) that sit next to the documents.

DOC_EXTENSIONS = (".md", ".mdx")
META_EXTENSIONS = (".json", ".yaml", ".yml")

# =============================================================================
# Discovery
# =============================================================================
# Include pattern used when a collection declares no `files` filter, and the
# directory scanned by define_docs() when none is given.

DEFAULT_INCLUDE_PATTERN = "**/*"
DEFAULT_DOCS_DIR = "content/docs"

# =============================================================================
# Localization
# =============================================================================
# In a localized collection the first path segment names the locale. The
# default locale keeps its plain file name; every other locale is moved into
# a file name suffix (es/guide.mdx -> guide.es.mdx).

DEFAULT_LOCALE = "en"
