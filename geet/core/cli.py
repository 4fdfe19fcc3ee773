"""
GEET CLI entrypoint: lists spectral indices and colors, builds and exports
mosaics and runs batch radiometric normalization.
"""

import sys

import click  # type: ignore
from click import echo
import ee

from geet.analytics.mad import radcal_batch
from geet.core.config import ConfigManager
from geet.core.logger import Logger
from geet.export import download_image, export_img
from geet.geo.aoi import AOI, union_geometry
from geet.ingestion.eemanager import ee_manager
from geet.ingestion.indices import available_indices
from geet.ingestion.mosaics import mosaic as build_mosaic
from geet.ingestion.sensorspec import SensorSpec
from geet.visualization.palettes import color as lookup_color

logger = Logger.get_logger(__name__)


def _config(ctx) -> ConfigManager:
    return ctx.obj["config"]


def _init_ee(cfg: ConfigManager) -> None:
    if cfg.get("ee_project") and not ee_manager.project:
        ee_manager.project = cfg.get("ee_project")
    ee_manager.initialize()


def _roi_geometry(path):
    return union_geometry(AOI.from_file(path)) if path else None


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/TOML/JSON settings file (defaults to $GEET_CONFIG).",
)
@click.pass_context
def cli(ctx, config_path):
    """GEET: Google Earth Engine toolbox."""
    Logger.setup()
    ctx.ensure_object(dict)
    cfg = ConfigManager.from_env()
    if config_path:
        cfg.load(config_path)
    ctx.obj["config"] = cfg


@cli.command()
@click.option("--sensor", "-s", default=None, help="Sensor key (L5, L7, L8, S2).")
@click.pass_context
def indices(ctx, sensor):
    """List the spectral indices available for a sensor."""
    try:
        sensor = sensor or _config(ctx).get("default_sensor")
        spec = SensorSpec.from_name(sensor)
        for name in available_indices(spec):
            echo(name)
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Indices command failed", exc_info=True)
        echo(f"❌  {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("name")
def color(name):
    """Print the hex value of a named land-cover color."""
    try:
        echo(lookup_color(name))
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Color command failed", exc_info=True)
        echo(f"❌  {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("sensor")
@click.option("--start", "-s", required=True, help="Start date (YYYY-MM-DD).")
@click.option("--end", "-e", required=True, help="End date (YYYY-MM-DD).")
@click.option(
    "--roi",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Vector file with the region of interest.",
)
@click.option("--scale", type=float, default=None, help="Resolution in meters.")
@click.option("--drive", default=None, help="Start a Drive export with this name.")
@click.option(
    "--out",
    type=click.Path(dir_okay=False),
    default=None,
    help="Download the mosaic as a GeoTIFF to this path (requires --roi).",
)
@click.pass_context
def mosaic(ctx, sensor, start, end, roi, scale, drive, out):
    """Build a least-cloudy mosaic for SENSOR and export or download it."""
    cfg = _config(ctx)
    try:
        if bool(drive) == bool(out):
            raise click.UsageError("Pass exactly one of --drive or --out")
        scale = scale or cfg.get("scale")
        _init_ee(cfg)
        region = _roi_geometry(roi)
        image = build_mosaic(sensor, start, end, roi=region)
        if drive:
            task = export_img(
                image,
                drive,
                scale=scale,
                max_pixels=cfg.get("max_pixels"),
                region=region,
                folder=cfg.get("drive_folder"),
            )
            echo(f"✅  Export task {task.id} started")
        else:
            if region is None:
                raise click.UsageError("--out requires --roi")
            path = download_image(image, out, region, scale=scale)
            echo(f"✅  Mosaic saved to {path}")
    except click.UsageError:
        raise
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Mosaic command failed", exc_info=True)
        echo(f"❌  Mosaic failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("reference_id")
@click.argument("target_ids", nargs=-1, required=True)
@click.option(
    "--roi",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Vector file with the region used for iMAD and the regressions.",
)
@click.option("--niter", type=int, default=None, help="Maximum iMAD iterations.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the normalization coefficients to this CSV file.",
)
@click.pass_context
def normalize(ctx, reference_id, target_ids, roi, niter, output):
    """Radiometrically normalize TARGET_IDS to REFERENCE_ID."""
    cfg = _config(ctx)
    try:
        _init_ee(cfg)
        result = radcal_batch(
            ee.Image(reference_id),
            [ee.Image(target_id) for target_id in target_ids],
            _roi_geometry(roi),
            niter=niter or cfg.get("mad_iterations"),
            tolerance=cfg.get("mad_tolerance"),
            threshold=cfg.get("invariant_threshold"),
            max_pixels=cfg.get("reduce_max_pixels"),
        )
        df = result.coefficients_frame(ee_manager)
        if output:
            df.to_csv(output, index=False)
            echo(f"✅  Coefficients saved to {output}")
        else:
            echo(df.to_string(index=False))
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Normalize command failed", exc_info=True)
        echo(f"❌  Normalization failed: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()  # pylint: disable=no-value-for-parameter
