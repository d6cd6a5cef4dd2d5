# -*- coding: utf-8 -*-
import argparse
import logging
import sys
from pathlib import Path

import gin

from imv_episodes.common.constants import SUPPORTED_FILE_TYPES
from imv_episodes.common.datasets import Dataset
from imv_episodes.data import episode_generation

DEFAULT_GIN_CONFIG = Path(__file__).parent.parent / 'gin_configs' / 'imv_episodes.gin'


def build_parser():
    parser = argparse.ArgumentParser(
        description='Derive index invasive mechanical ventilation episodes from CLIF tables')

    subparsers = parser.add_subparsers(title='Commands',
                                       dest='command', required=True)

    parser_build = subparsers.add_parser('build',
                                         help='Normalizes the CLIF tables and builds the IMV episode cohort.')

    build_arguments = parser_build.add_argument_group('Build arguments')

    build_arguments.add_argument('--data-dir', dest='data_dir',
                                 required=True, type=Path,
                                 help="Directory holding clif_respiratory_support, clif_hospitalization and "
                                      "clif_patient tables.")
    build_arguments.add_argument('--file-type', dest='file_type',
                                 default='parquet', required=False, type=str,
                                 choices=SUPPORTED_FILE_TYPES,
                                 help="Format of the input tables. Default: 'parquet'")
    build_arguments.add_argument('--site', dest='site',
                                 required=True, type=str,
                                 help="Institution identifier, used to name the output files.")
    build_arguments.add_argument('-o', '--output-dir', dest='output_dir',
                                 required=True, type=Path,
                                 help="Directory to write the episodes and the attrition table to.")
    build_arguments.add_argument('--overwrite', dest='overwrite',
                                 default=False, action='store_true',
                                 help="Rebuild even if the output directory is marked as done.")
    build_arguments.add_argument('-c', '--config', default=None, dest='config',
                                 nargs='+', type=str,
                                 help="Path to gin config files overriding the cohort thresholds.")
    build_arguments.add_argument('--gin-binding', default=None, dest='gin_bindings',
                                 nargs='+', type=str,
                                 help="Inline gin bindings, e.g. 'merge_imv_runs.max_gap_hours = 12'")
    return parser


def run_episode_pipeline(data_dir, output_dir, file_type, site, overwrite=False):
    output_ds = Dataset(output_dir)

    if output_ds.is_done() and not overwrite:
        logging.info(f"Skipping episode generation, as output seems to exist in {output_dir}")
        return

    logging.info("Running episode generation...")
    df_resp, df_hosp, df_patient = episode_generation.read_tables(data_dir, file_type)
    df_episodes, df_attrition = episode_generation.generate_episodes(df_resp, df_hosp, df_patient)

    output_ds.prepare()
    episode_generation.write_episodes(df_episodes, df_attrition, output_dir, site)
    output_ds.mark_done()


def main(my_args=tuple(sys.argv[1:])):
    args = build_parser().parse_args(my_args)

    log_fmt = '%(asctime)s - %(levelname)s: %(message)s'
    logging.basicConfig(format=log_fmt)
    logging.getLogger().setLevel(logging.INFO)

    # Dispatch
    if args.command == 'build':
        if args.config:
            gin_config_files = args.config
        else:
            gin_config_files = [str(DEFAULT_GIN_CONFIG)] if DEFAULT_GIN_CONFIG.exists() else []
        gin_bindings = args.gin_bindings if args.gin_bindings else []
        gin.parse_config_files_and_bindings(gin_config_files, gin_bindings)
        try:
            run_episode_pipeline(args.data_dir, args.output_dir, args.file_type, args.site,
                                 overwrite=args.overwrite)
        finally:
            gin.clear_config()


"""Main module."""

if __name__ == '__main__':
    main()
