"""
Tests for the command line interface.
"""

import json

from typer.testing import CliRunner

from slotbooker.cli.app import app

runner = CliRunner()


def _write_config(tmp_path, database_url=None):
    config_path = tmp_path / "config.yaml"
    lines = ["timezone: America/Sao_Paulo\n"]
    if database_url:
        lines.append(f"database_url: {database_url}\n")
    config_path.write_text("".join(lines), encoding="utf-8")
    return config_path


def test_slots_as_json(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(
        app,
        ["slots", "barbearia-centro", "corte-barba", "--date", "2026-11-02", "--json", "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    slots = json.loads(result.stdout)
    assert slots[0] == {"start": "09:00", "end": "10:00", "available": True}
    assert {"start": "10:00", "end": "11:00", "available": False} in slots


def test_slots_on_closed_day(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(
        app,
        ["slots", "barbearia-centro", "corte", "--date", "2026-11-01", "--config", str(config_path)],
    )

    assert result.exit_code == 0
    assert "No slots" in result.stdout


def test_unknown_service(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(
        app,
        ["slots", "barbearia-centro", "missing", "--date", "2026-11-02", "--config", str(config_path)],
    )

    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_book_taken_slot(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(
        app,
        [
            "book", "barbearia-centro", "corte", "10:30",
            "--client", "cliente-carla", "--date", "2026-11-02", "--config", str(config_path),
        ],
    )

    assert result.exit_code == 1
    assert "Slot taken" in result.stdout


def test_database_workflow(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'bookings.db'}"
    config_path = _write_config(tmp_path, database_url=database_url)
    seed = tmp_path / "seed.json"
    seed.write_text(
        json.dumps(
            {
                "companies": [{"id": "studio", "weekly_schedule": {"monday": "10:00-12:00"}}],
                "services": [
                    {"id": "manicure", "company_id": "studio", "duration_minutes": 45, "price": "35.00"}
                ],
            }
        ),
        encoding="utf-8",
    )

    init = runner.invoke(app, ["init-db", "--seed", str(seed), "--config", str(config_path)])
    assert init.exit_code == 0, init.output

    booked = runner.invoke(
        app,
        [
            "book", "studio", "manicure", "10:00",
            "--client", "cliente-ana", "--date", "2026-11-02", "--config", str(config_path),
        ],
    )
    assert booked.exit_code == 0, booked.output

    again = runner.invoke(
        app,
        [
            "book", "studio", "manicure", "10:30",
            "--client", "cliente-bruno", "--date", "2026-11-02", "--config", str(config_path),
        ],
    )
    assert again.exit_code == 1
    assert "Slot taken" in again.stdout

    slots = runner.invoke(
        app,
        ["slots", "studio", "manicure", "--date", "2026-11-02", "--free", "--json", "--config", str(config_path)],
    )
    assert slots.exit_code == 0, slots.output
    assert [slot["start"] for slot in json.loads(slots.stdout)] == ["11:00"]


def test_reservations_requires_one_filter(tmp_path):
    result = runner.invoke(app, ["reservations", "--config", str(_write_config(tmp_path))])
    assert result.exit_code == 1


def test_reservations_filters_client_listing_by_status(tmp_path):
    config_path = _write_config(tmp_path)

    cancelled = runner.invoke(
        app,
        ["reservations", "--client", "cliente-bruno", "--status", "cancelled", "--config", str(config_path)],
    )
    confirmed = runner.invoke(
        app,
        ["reservations", "--client", "cliente-bruno", "--status", "confirmed", "--config", str(config_path)],
    )

    assert cancelled.exit_code == 0, cancelled.output
    assert "No reservations found" not in cancelled.stdout
    assert confirmed.exit_code == 0, confirmed.output
    assert "No reservations found" in confirmed.stdout


def test_reservations_rejects_unknown_status(tmp_path):
    result = runner.invoke(
        app,
        ["reservations", "--client", "cliente-bruno", "--status", "lost", "--config", str(_write_config(tmp_path))],
    )

    assert result.exit_code == 1
    assert "Unknown reservation status" in result.stdout


def test_database_errors_are_reported(tmp_path):
    config_path = _write_config(tmp_path, database_url=f"sqlite:///{tmp_path / 'empty.db'}")

    result = runner.invoke(
        app,
        ["slots", "barbearia-centro", "corte", "--date", "2026-11-02", "--config", str(config_path)],
    )

    assert result.exit_code == 1
    assert "Something went wrong while talking to the database" in result.stdout
