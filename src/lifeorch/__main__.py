from lifeorch.main import cli

cli()
