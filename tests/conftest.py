from __future__ import annotations

import pytest

from fakes import make_container, make_repositories


@pytest.fixture
def repos():
    return make_repositories("post-1")


@pytest.fixture
def container(repos):
    return make_container(repos)
