"""Entity name utilities.

Catalog entity names must be lowercase and limited to ``[a-z0-9-]``. Azure
DevOps project and repository names allow spaces, dots and underscores, so
names are normalized before they are used as identity keys.
"""

from __future__ import annotations

import re

_DISALLOWED_NAME_CHARS = re.compile(r"[^a-z0-9-]")


def entity_name_part(value: str) -> str:
    """Normalize a remote name into a catalog-safe name segment.

    Parameters
    ----------
    value:
        Raw project or repository name.

    Returns
    -------
    str
        ``value`` lower-cased with every character outside ``[a-z0-9-]``
        replaced by ``-``. Length is preserved.

    Examples
    --------
    >>> entity_name_part("Payments.API_v2")
    'payments-api-v2'

    """
    return _DISALLOWED_NAME_CHARS.sub("-", value.lower())


def entity_name(project_name: str, repository_name: str) -> str:
    """Build the identity key for a repository within a project.

    Examples
    --------
    >>> entity_name("Alpha", "svc-one")
    'alpha-svc-one'

    """
    return f"{entity_name_part(project_name)}-{entity_name_part(repository_name)}"


def project_repo(project_name: str, repository_name: str) -> str:
    """Return the ``Project/Repo`` pair used in provenance annotations.

    Examples
    --------
    >>> project_repo("Alpha", "svc-one")
    'Alpha/svc-one'

    """
    return f"{project_name}/{repository_name}"
