from renovate_merger.cli import app

app(prog_name="gh-renovate-merge")
