from cargo_rpm import cli

cli.cli()
