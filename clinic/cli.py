import click
from datetime import datetime
from clinic import db
from clinic.models.user import User
from clinic.models.availability import WorkingHours
from clinic.reservations import SlotReservationService, ReservationError

def _parse_date(ctx, param, value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise click.BadParameter('use YYYY-MM-DD')

def register_commands(app):

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True)
    @click.option('--first-name', prompt=True)
    @click.option('--last-name', prompt=True)
    @click.password_option()
    def create_admin(email, first_name, last_name, password):
        """Create an administrator account."""
        if User.query.filter_by(email=email.lower()).first():
            raise click.ClickException(f'User {email} already exists.')
        user = User(email=email, first_name=first_name, last_name=last_name, password=password)
        db.session.add(user)
        db.session.commit()
        click.echo(f'Administrator {user.email} created.')

    @app.cli.command('init-hours')
    def init_hours():
        """Create default working hours for missing weekdays."""
        created = WorkingHours.ensure_defaults()
        click.echo(f'Created working hours for {len(created)} day(s).')

    @app.cli.command('generate-slots')
    @click.argument('start_date', callback=_parse_date)
    @click.argument('end_date', callback=_parse_date)
    def generate_slots(start_date, end_date):
        """Generate missing slots between two dates (inclusive)."""
        try:
            created = SlotReservationService().generate_slots(start_date, end_date)
        except ReservationError as e:
            raise click.ClickException(e.message)
        click.echo(f'Created {created} slot(s) from {start_date} to {end_date}.')
