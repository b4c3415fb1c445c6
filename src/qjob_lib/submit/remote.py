# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Helpers executed by the tasks on the compute nodes.

This module is copied into every job's workspace and imported by the code
that runs each task. It must therefore only depend on the standard library
and PyYAML.
"""

import yaml

_START = (yaml.MappingStartEvent, yaml.SequenceStartEvent)
_END = (yaml.MappingEndEvent, yaml.SequenceEndEvent)
_NODE = (yaml.ScalarEvent, yaml.AliasEvent) + _START


def load_arguments(path, field):
    """
    Load the value of a single top-level field of a YAML mapping.

    The document is read as a stream of events. Values of other fields are
    skipped without being constructed, and reading stops as soon as the
    requested field has been read.

    Raises:
        KeyError: If the field is not present.
    """
    with open(path) as f:
        events = yaml.parse(f, Loader=yaml.SafeLoader)
        depth = 0
        is_key = True
        for event in events:
            if depth == 1 and isinstance(event, _NODE):
                if (
                    is_key
                    and isinstance(event, yaml.ScalarEvent)
                    and event.value == field
                ):
                    return _construct(_readNode(event, events))
                is_key = not is_key

            if isinstance(event, _START):
                depth += 1
            elif isinstance(event, _END):
                depth -= 1

    raise KeyError(field)


def _readNode(key, events):
    """Collect the events of the node following the key."""
    node = []
    depth = 0
    for event in events:
        node.append(event)
        if isinstance(event, _START):
            depth += 1
        elif isinstance(event, _END):
            depth -= 1
        if depth == 0:
            return node

    raise yaml.YAMLError(f"Missing value of field '{key.value}'.")


def _construct(node):
    return yaml.safe_load(
        yaml.emit(
            [
                yaml.StreamStartEvent(),
                yaml.DocumentStartEvent(),
                *node,
                yaml.DocumentEndEvent(),
                yaml.StreamEndEvent(),
            ]
        )
    )
