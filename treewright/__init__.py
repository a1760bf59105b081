"""treewright -- rule-based code generation over a virtual file tree.

Schematics are functions from options to *rules*; a rule transforms a
:class:`~treewright.tree.Tree` that records every change as an action.  A
:class:`~treewright.workflow.Workflow` dry-runs the rule, reports the
effective changes, commits them to disk and then runs the tasks the rule
scheduled (package install, ``git init``, nested schematics, ...).
"""

__version__ = "0.1.0"
