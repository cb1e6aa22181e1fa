"""
Static input files
Read and validated while declaring the graphs, before any provider call
"""

import json
import os

import yaml

from stackgraph import InputFileError


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise InputFileError(path, e.strerror or str(e)) from e


def load_policy_document(path: str) -> str:
    """
    Load an IAM policy document

    Args:
        path: Path to the JSON document

    Returns:
        The document as compact JSON

    Raises:
        InputFileError: File is missing, unreadable, or not a policy document
    """
    text = _read(path)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputFileError(path, f"malformed JSON: {e}") from e

    if not isinstance(document, dict) or not document.get("Statement"):
        raise InputFileError(path, "not an IAM policy document (missing Statement)")
    return json.dumps(document, separators=(",", ":"))


def load_manifest(path: str) -> str:
    """
    Validate a Kubernetes manifest file

    Args:
        path: Path to the YAML manifest

    Returns:
        Absolute path of the manifest, which is applied from disk

    Raises:
        InputFileError: File is missing, not YAML, or holds no Kubernetes objects
    """
    text = _read(path)
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as e:
        raise InputFileError(path, f"malformed YAML: {e}") from e

    if not documents:
        raise InputFileError(path, "manifest contains no objects")
    for position, doc in enumerate(documents):
        if not isinstance(doc, dict) or not doc.get("apiVersion") or not doc.get("kind"):
            raise InputFileError(path, f"object {position} is missing apiVersion or kind")
    return os.path.abspath(path)
