from pdf_scout.cli import cli

cli()
