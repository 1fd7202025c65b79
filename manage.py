#!/usr/bin/env python3
"""
Feedmill management CLI.

Usage:
    python manage.py serve       Migrate the database and start the API server
    python manage.py migrate     Apply pending migrations
    python manage.py status      Show migration status
    python manage.py verify      Check schema integrity and ledger balances
    python manage.py seed        Load a small demo catalog
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Demo catalog: name, category, opening stock, min stock, lead time, unit cost, supplier
SEED_MATERIALS = [
    ("Jagung Giling", "feed", 2000.0, 500.0, 7, 5500.0, "CV Tani Makmur"),
    ("Dedak Halus", "feed", 1500.0, 300.0, 5, 3500.0, "CV Tani Makmur"),
    ("Konsentrat Kambing", "feed", 800.0, 200.0, 10, 8000.0, "PT Nutrisi Ternak"),
    ("Tepung Ikan", "feed", 400.0, 100.0, 14, 12000.0, "PT Nutrisi Ternak"),
    ("Mineral Mix", "mineral", 150.0, 50.0, 14, 15000.0, None),
]

# Per kg of product; sums to 1 kg
SEED_FORMULA = {
    "Jagung Giling": 0.40,
    "Dedak Halus": 0.25,
    "Konsentrat Kambing": 0.20,
    "Tepung Ikan": 0.10,
    "Mineral Mix": 0.05,
}


def _db_path(args: argparse.Namespace) -> Path | None:
    return getattr(args, "db_path", None)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start uvicorn. Migrations run in the application lifespan."""
    import uvicorn

    from feedmill.config import get_settings

    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port
    print(f"Starting server on {host}:{port}...")
    uvicorn.run(
        "feedmill.api.main:app",
        host=host,
        port=port,
        reload=args.reload or settings.api.reload,
    )


def cmd_migrate(args: argparse.Namespace) -> None:
    from feedmill.infrastructure.storage.sqlite.migrations import initialize_database

    results = asyncio.run(
        initialize_database(_db_path(args), create_backup_before=not args.no_backup)
    )
    if not results:
        print("Database is up to date.")
    for result in results:
        status = "SUCCESS" if result.success else "FAILED"
        print(f"[{status}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    if any(not r.success for r in results):
        sys.exit(1)


def cmd_status(args: argparse.Namespace) -> None:
    from feedmill.infrastructure.storage.sqlite.migrations import get_migration_status

    status = asyncio.run(get_migration_status(_db_path(args)))
    print(f"Database exists: {status['exists']}")
    print(f"Current version: {status.get('current_version', 'N/A')}")
    print(f"Applied migrations: {status.get('applied_migrations', [])}")
    print(f"Pending migrations: {status.get('pending_migrations', [])}")


def cmd_verify(args: argparse.Namespace) -> None:
    from feedmill.infrastructure.storage.sqlite.migrations import verify_schema_integrity

    checks = asyncio.run(verify_schema_integrity(_db_path(args)))
    failed = False
    for check in checks:
        passed = check["status"] == "PASS"
        failed = failed or not passed
        print(f"[{'PASS' if passed else 'FAIL'}] {check['check']}")
        if not passed:
            for key, value in check.items():
                if key not in ("check", "status"):
                    print(f"       {key}: {value}")
    if failed:
        sys.exit(1)


async def _seed() -> None:
    from feedmill.config.settings import get_settings
    from feedmill.core.entities import Formula, FormulaLine, Material, Product
    from feedmill.infrastructure.storage.sqlite import (
        close_pool,
        get_formula_store,
        get_material_store,
        get_product_store,
    )
    from feedmill.infrastructure.storage.sqlite.migrations import initialize_database

    await initialize_database(get_settings().storage.db_path)
    try:
        materials = await get_material_store()
        products = await get_product_store()
        formulas = await get_formula_store()

        ids: dict[str, int] = {}
        for name, category, stock, min_stock, lead_time, cost, supplier in SEED_MATERIALS:
            existing = await materials.get_material_by_name(name)
            if existing is None:
                existing = await materials.create_material(
                    Material(
                        name=name,
                        category=category,
                        stock=stock,
                        min_stock=min_stock,
                        lead_time_days=lead_time,
                        safety_stock=min_stock / 2,
                        unit_cost=cost,
                        supplier=supplier,
                    )
                )
                print(f"  material  {name} ({stock:g} kg)")
            ids[name] = existing.id

        product = await products.get_product_by_code("PKN-001")
        if product is None:
            product = await products.create_product(
                Product(
                    code="PKN-001",
                    name="Pakan Kambing Starter",
                    category="feed",
                    selling_price=15000.0,
                )
            )
            formula = await formulas.create_formula(
                Formula(
                    product_id=product.id,
                    name="Starter Standar",
                    lines=[
                        FormulaLine(material_id=ids[name], quantity=qty)
                        for name, qty in SEED_FORMULA.items()
                    ],
                )
            )
            print(f"  product   {product.code} {product.name}")
            print(f"  formula   #{formula.id} {formula.name} ({formula.unit_cost:,.2f}/kg)")
    finally:
        await close_pool()


def cmd_seed(args: argparse.Namespace) -> None:
    """Load the demo catalog. Existing records are left alone."""
    print("Seeding demo catalog...")
    asyncio.run(_seed())
    print("Done.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Feedmill management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None, help="Bind host (default from settings)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default from settings)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrations")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_status.set_defaults(func=cmd_status)

    # verify
    p_verify = sub.add_parser("verify", help="Verify schema integrity and ledger balances")
    p_verify.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_verify.set_defaults(func=cmd_verify)

    # seed
    p_seed = sub.add_parser("seed", help="Load a small demo catalog")
    p_seed.set_defaults(func=cmd_seed)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
