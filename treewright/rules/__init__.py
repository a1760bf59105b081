"""treewright rules -- composable tree transformations.

Quick usage::

    from treewright.rules import apply, apply_templates, chain, merge_with, move, url

    def factory(options):
        return chain([
            merge_with(apply(url("./files"), [apply_templates(options), move(options.name)])),
        ])
"""

from .base import (
    FileOperator,
    FilePredicate,
    InvalidRuleResultError,
    InvalidSourceResultError,
    Rule,
    SchematicsException,
    Source,
    apply,
    branch_and_merge,
    call_rule,
    call_source,
    chain,
    compose_file_operators,
    empty,
    filter_files,
    for_each,
    merge_with,
    noop,
    source,
    when,
)
from .move import move
from .nested import add_task, external_schematic, schematic
from .templates import (
    TemplateRenderError,
    TemplateRenderer,
    apply_content_template,
    apply_path_template,
    apply_templates,
    content_template,
    path_template,
)
from .url import url

__all__ = [
    # Types
    "Rule",
    "Source",
    "FileOperator",
    "FilePredicate",
    # Execution
    "call_rule",
    "call_source",
    # Sources
    "empty",
    "source",
    "apply",
    "url",
    # Rules
    "noop",
    "chain",
    "when",
    "merge_with",
    "branch_and_merge",
    "for_each",
    "compose_file_operators",
    "filter_files",
    "move",
    "schematic",
    "external_schematic",
    "add_task",
    # Templates
    "TemplateRenderer",
    "content_template",
    "path_template",
    "apply_content_template",
    "apply_path_template",
    "apply_templates",
    # Errors
    "SchematicsException",
    "InvalidRuleResultError",
    "InvalidSourceResultError",
    "TemplateRenderError",
]
