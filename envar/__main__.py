from envar.cli.main import cli

cli()
