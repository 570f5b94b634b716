# bake_terrain.py

"""
================================================================================
OFFLINE TERRAIN BAKER SCRIPT
================================================================================
This script is a command-line tool for generating one or more terrains from a
JSON configuration and saving them to disk ("baking"). Each terrain is written
as a mesh archive (.npz) plus a top-down shaded preview image, and a
manifest.json records what was produced.

Terrains are independent of one another, so they are generated in parallel
worker processes.

Usage:
    python bake_terrain.py --config path/to/your/terrains.json
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import hashlib
import multiprocessing
import numpy as np
from PIL import Image
from tqdm import tqdm

from terrain_synth.terrain import TerrainGenerator, TerrainOptions
from terrain_synth.shading import Light, TerrainMaterial, WaterEnvironment, shade_mesh
from terrain_synth import config as DEFAULTS

# Camera height above the terrain centre used for preview shading.
PREVIEW_CAMERA_HEIGHT = 200.0

# --- Global variables for worker processes ---
worker_output_dir = None
worker_light_config = {}
worker_water_config = {}


def save_preview(color_array: np.ndarray, file_path: str, scale: int = DEFAULTS.PREVIEW_SCALE):
    """
    Saves a (depth+1, width+1, 3) float color grid as an RGB PNG using Pillow.
    Rows map to image rows, so +Z points down in the image.
    """
    pixels = (np.clip(color_array, 0.0, 1.0) * 255).astype(np.uint8)
    img = Image.fromarray(pixels, 'RGB')
    if scale > 1:
        img = img.resize((img.width * scale, img.height * scale), Image.NEAREST)
    img.save(file_path, 'PNG')


def init_worker(output_dir, light_config, water_config):
    """Initializes the global state for each worker process."""
    global worker_output_dir, worker_light_config, worker_water_config
    worker_output_dir = output_dir
    worker_light_config = light_config
    worker_water_config = water_config


def process_terrain(task):
    """
    Builds, shades and SAVES a single terrain. Returns only minimal metadata.
    """
    index, terrain_config = task
    worker_logger = logging.getLogger(f"Worker-{os.getpid()}")
    name = terrain_config.get('name', f"terrain_{index}")

    try:
        options = TerrainOptions.from_config(terrain_config)
        mesh = TerrainGenerator(options, logger=worker_logger).build()

        mesh_path = os.path.join(worker_output_dir, f"{name}.npz")
        np.savez_compressed(mesh_path, vertices=mesh.vertices, normals=mesh.normals, indices=mesh.indices)

        # Terrain water height defaults to the terrain's own water level.
        water_config = dict(worker_water_config)
        water_config.setdefault('water_height', options.water_level)
        environment = WaterEnvironment.from_config(water_config)
        light = Light.from_config(worker_light_config)
        camera_pos = (0.0, PREVIEW_CAMERA_HEIGHT, 0.0)

        colors = shade_mesh(TerrainMaterial(), mesh, 0.0, camera_pos, light, environment)
        preview_path = os.path.join(worker_output_dir, f"{name}.png")
        save_preview(colors.reshape(options.depth + 1, options.width + 1, 3), preview_path)

        mesh_hash = hashlib.md5(
            mesh.vertices.tobytes() + mesh.normals.tobytes() + mesh.indices.tobytes()
        ).hexdigest()
        return {
            'index': index,
            'name': name,
            'ok': True,
            'options': options.to_dict(),
            'mesh_file': os.path.basename(mesh_path),
            'preview_file': os.path.basename(preview_path),
            'mesh_md5': mesh_hash,
            'vertex_count': mesh.vertex_count,
            'triangle_count': mesh.triangle_count,
        }
    except Exception as e:
        # Use exc_info=True to log the full traceback from the worker process
        worker_logger.critical(f"WORKER: Failed to bake terrain '{name}': {e}", exc_info=True)
        return {'index': index, 'name': name, 'ok': False, 'error': str(e)}


# --- Main Baking Function ---
def bake_terrains(config_path: str, output_dir: str = None, num_workers: int = None) -> dict:
    """
    Loads a configuration, generates every terrain it lists, and saves meshes,
    previews and a manifest to the output directory.

    Returns:
        dict: The manifest that was written, or None if the config could not be loaded.
    """
    logger = logging.getLogger("Baker")

    # 1. --- Load Configuration ---
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return None

    terrain_configs = config.get('terrains', [])
    if not terrain_configs:
        logger.warning("Configuration lists no terrains; nothing to bake.")

    # 2. --- Prepare Output Directory ---
    output_dir = output_dir or config.get('output_dir', DEFAULTS.DEFAULT_BAKE_OUTPUT_DIR)
    os.makedirs(output_dir, exist_ok=True)

    # 3. --- Main Baking Loop (Parallelized) ---
    tasks = list(enumerate(terrain_configs))
    if num_workers is None:
        num_workers = max(1, min(len(tasks), multiprocessing.cpu_count() - 1))
    logger.info(f"Baking {len(tasks)} terrain(s) with {num_workers} worker process(es)...")

    start_time = time.perf_counter()
    results = []
    init_args = (output_dir, config.get('lighting', {}), config.get('water', {}))
    with multiprocessing.Pool(processes=num_workers, initializer=init_worker, initargs=init_args) as pool:
        for result in tqdm(pool.imap_unordered(process_terrain, tasks), total=len(tasks), desc="Baking Terrains"):
            results.append(result)

    # --- Finalization ---
    results.sort(key=lambda r: r['index'])
    manifest = {'terrains': results}
    manifest_path = os.path.join(output_dir, "manifest.json")
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)

    failed = [r['name'] for r in results if not r['ok']]
    end_time = time.perf_counter()
    logger.info(f"Baking complete! Total time: {end_time - start_time:.2f} seconds.")
    if failed:
        logger.error(f"{len(failed)} terrain(s) failed: {', '.join(failed)}")
    logger.info(f"Baked terrains and manifest.json saved to: {output_dir}")
    return manifest


# --- Command-Line Interface ---
def main(argv=None):
    parser = argparse.ArgumentParser(description="Offline terrain baker for terrain_synth.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the JSON configuration file listing the terrains to bake."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory (defaults to the config's 'output_dir' or 'baked_terrains')."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker processes (defaults to CPU count - 1)."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    manifest = bake_terrains(args.config, args.output, args.workers)
    if manifest is None or any(not r['ok'] for r in manifest['terrains']):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
