"""Starter .linestage.toml template."""

DEFAULT_TOML = """\
# linestage configuration
version = "1.0"

[patch]
omit_unit_lengths = true     # "@@ -3 +3,2 @@" instead of "@@ -3,1 +3,2 @@"
recompute_offsets = false    # shift later hunks by the size change of earlier ones

[apply]
timeout = 30                 # seconds allowed for `git apply --cached`
# extra_args = ["--whitespace=nowarn"]

[output]
format = "terminal"          # terminal | json
show_line_numbers = true

[log]
enabled = true
directory = ".linestage"     # operations.log is written here, relative to the repo root
"""
