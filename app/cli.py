import click
from flask.cli import AppGroup

from app.services.payout_service import PayoutService

payouts_cli = AppGroup("payouts", help="Repair center payout commands.")


@payouts_cli.command("run")
@click.option("--force", is_flag=True, help="Run even when today is not a scheduled payout day.")
def run_payouts(force):
    """Pay every eligible pending payout in one automatic batch."""
    result = PayoutService.run_auto_payouts(force=force)
    if result is None:
        click.echo("No payout run today.")
        return
    click.echo(f"Processed payouts: {result.success_count} successful, {result.failure_count} failed.")
    for failure in result.failures:
        click.echo(f"  #{failure['payout_id']}: {failure['error']}")


def register_cli(app):
    app.cli.add_command(payouts_cli)
