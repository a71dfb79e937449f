"""
Large File Guard Package.

Decides whether a file about to be opened should be opened normally,
handed to a chunked large-file viewer, or left unopened after asking.

Modules:
- modes: filename -> editing mode resolution
- policy: the interception decision
- prompt: blocking single-key prompt
- command_guard: run host commands with interception disabled
- interceptor: host open-pipeline glue and listing shortcut
- config: defaults, config file and environment settings
- guard_utils: shared utilities (logging, caching, I/O)
- tests: unit tests
"""
