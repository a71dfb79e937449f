"""
large-file-guard command line.

Usage:
    large-file-guard check PATH [--operation NAME] [--size N] [--json]
    large-file-guard resolve NAME [--platform win32]
    large-file-guard open PATH [--editor CMD] [--viewer CMD]
    large-file-guard view PATH [--viewer CMD]
    large-file-guard config show
    large-file-guard config set KEY VALUE

`check` exit status: 0 proceed, 2 substitute, 3 abort, 1 error.
"""
import argparse
import os
import shlex
import subprocess
import sys
from dataclasses import replace

from large_file_guard import config
from large_file_guard.errors import AbortedByUser, OpenSubstituted
from large_file_guard.guard_utils import configure_logging, fast_json_dumps, graceful_main
from large_file_guard.interceptor import OpenInterceptor, describe_file, open_in_viewer
from large_file_guard.modes import ModeResolver
from large_file_guard.policy import Action, InterceptionPolicy, human_size

EXIT_CODES = {
    Action.PROCEED: 0,
    Action.SUBSTITUTE: 2,
    Action.ABORT: 3,
}

DEFAULT_VIEWER = "less"


def _print_json(data):
    sys.stdout.write(fast_json_dumps(data).decode() + "\n")


def _run_command(command: str, path: str) -> int:
    return subprocess.run(shlex.split(command) + [path]).returncode


def cmd_check(args) -> int:
    policy_config = config.load_policy_config()
    if args.application:
        policy_config = config.with_overrides(policy_config, application_mode=args.application)
    policy = InterceptionPolicy(policy_config, config.load_resolver())

    descriptor = describe_file(args.path, args.declared_mode)
    if args.size is not None:
        descriptor = replace(descriptor, size_bytes=args.size)

    action = policy.decide(descriptor, args.operation)

    if args.json:
        _print_json({
            "path": args.path,
            "size": descriptor.size_bytes,
            "action": action.value,
        })
    else:
        size = human_size(descriptor.size_bytes) if descriptor.size_bytes else "-"
        print(f"{action.value}\t{size}\t{args.path}")
    return EXIT_CODES[action]


def cmd_resolve(args) -> int:
    resolution = config.load_resolution_config(platform=args.platform)
    resolver = ModeResolver(config.load_mode_table(), resolution)
    mode = resolver(args.name)
    if mode is None:
        return 1
    print(mode)
    return 0


def cmd_open(args) -> int:
    policy = InterceptionPolicy(config.load_policy_config, config.load_resolver())
    interceptor = OpenInterceptor(policy, lambda path: _run_command(args.viewer, path))
    try:
        return interceptor.open(args.path, lambda path: _run_command(args.editor, path), args.operation)
    except OpenSubstituted as e:
        return e.result
    except AbortedByUser as e:
        sys.stderr.write(f"{e}\n")
        return EXIT_CODES[Action.ABORT]


def cmd_view(args) -> int:
    return open_in_viewer(args.path, lambda path: _run_command(args.viewer, path))


def cmd_config_show(args) -> int:
    policy_config = config.load_policy_config()
    resolution = config.load_resolution_config()
    data = policy_config.to_dict()
    data["case_sensitive_matching"] = resolution.case_sensitive_matching
    data["case_fold_fallback"] = resolution.case_insensitive_fallback
    data["mode_table_entries"] = len(config.load_mode_table())
    data["config_file"] = str(config.CONFIG_FILE)
    _print_json(data)
    return 0


def cmd_config_set(args) -> int:
    settings = config.update_config_file(args.key, args.value)
    print(f"{args.key} = {settings[args.key]}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="large-file-guard",
        description="Decide how large files should be opened",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Decide how PATH should be opened")
    check.add_argument("path")
    check.add_argument("--operation", default=config.Defaults.OPERATION,
                       help="Operation name shown in the prompt")
    check.add_argument("--declared-mode", help="Skip mode resolution and use this mode")
    check.add_argument("--size", type=int, help="Use this size instead of the file's")
    check.add_argument("--application", choices=[m.value for m in config.ApplicationMode],
                       help="Override the configured application mode")
    check.add_argument("--json", action="store_true", help="Print JSON")
    check.set_defaults(func=cmd_check)

    resolve = sub.add_parser("resolve", help="Print the mode for a file name")
    resolve.add_argument("name")
    resolve.add_argument("--platform", help="Platform for case sensitivity (default: this one)")
    resolve.set_defaults(func=cmd_resolve)

    open_ = sub.add_parser("open", help="Open PATH in the editor, or the viewer if it is large")
    open_.add_argument("path")
    open_.add_argument("--editor", default=os.environ.get("EDITOR", "vi"))
    open_.add_argument("--viewer", default=DEFAULT_VIEWER)
    open_.add_argument("--operation", default=config.Defaults.OPERATION)
    open_.set_defaults(func=cmd_open)

    view = sub.add_parser("view", help="Open PATH in the viewer unconditionally")
    view.add_argument("path")
    view.add_argument("--viewer", default=DEFAULT_VIEWER)
    view.set_defaults(func=cmd_view)

    cfg = sub.add_parser("config", help="Show or change settings")
    cfg_sub = cfg.add_subparsers(dest="config_command", required=True)
    show = cfg_sub.add_parser("show", help="Print the effective settings")
    show.set_defaults(func=cmd_config_show)
    set_ = cfg_sub.add_parser("set", help="Persist one setting")
    set_.add_argument("key", choices=config.CONFIG_KEYS)
    set_.add_argument("value")
    set_.set_defaults(func=cmd_config_set)

    return parser


@graceful_main("cli")
def main(argv=None) -> int:
    configure_logging(exclusive=True)
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
