"""Entry point for stash.

Examples:
  stash                             # Interactive session
  stash add "fix #rust lifetimes in +webapp" -t "lifetimes"
  stash search "#rust error handling"
  stash ai "notes about rust but not the old ones"
"""


def main():
    """Main entry point."""
    from stash.interfaces.cli.app import run_cli

    run_cli()


if __name__ == "__main__":
    main()
