"""Allow ``python -m tf_report``."""

from tf_report.cli import app

app(prog_name="tf-report")
