import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from kubeprism.core.config import PrismConfig


POD_YAML = (
    "apiVersion: v1\n"
    "kind: Pod\n"
    "metadata:\n"
    "  name: web\n"
    "  namespace: prod\n"
    "spec:\n"
    "  containers:\n"
    "    - name: web\n"
    "      image: nginx:1.25"
)


@pytest.fixture
def config():
    return PrismConfig()


@pytest.fixture
def pod_yaml():
    return POD_YAML
