"""Click sub-commands of the depatlas CLI."""
