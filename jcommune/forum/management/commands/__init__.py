"""Package initialiser for custom management commands.

This file ensures that Python treats the `commands` directory as a
package, allowing Django to import the `run_tick` command defined
within.
"""