import os
import time
import logging
from dataclasses import replace
from datetime import datetime

from .content import ContentLoader
from .render import JinjaThemeRenderer, build_index


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages (and anything louder) in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total content files loaded:",
            "Total items published:",
            "Total drafts skipped:",
            "Total files written:",
            "Building listing pages",
            "Building taxonomy pages",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(log_dir=None):
    """
    Set up the UnitSite logger.

    Console output is filtered to the build summary and warnings; when
    ``log_dir`` is given every record is also written to a timestamped file there.
    """
    logger = logging.getLogger('UnitSite')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

    if log_dir:
        for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
            logger.removeHandler(handler)
            handler.close()
        os.makedirs(log_dir, exist_ok=True)
        log_filename = datetime.now().strftime('unitsite_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename), encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger


class UnitSite:
    """One build of a site: load content, index it, hand it to the renderer."""

    def __init__(self, project_dir, config, output_dir=None, build_drafts=None, renderer=None, log_dir=None):
        self.project_dir = project_dir
        if build_drafts is not None:
            config = replace(config, build_drafts=build_drafts)
        self.config = config
        self.content_dir = os.path.join(project_dir, config.content_dir)
        output_dir = output_dir or config.publish_dir
        self.output_dir = output_dir if os.path.isabs(output_dir) else os.path.join(project_dir, output_dir)
        self.renderer = renderer or JinjaThemeRenderer(project_dir)
        self.logger = setup_logging(log_dir)

        self.items = []
        self.index = None
        self.items_loaded = 0
        self.items_published = 0
        self.drafts_skipped = 0
        self.files_written = 0

    def load_content(self):
        """Parse every content file; raises on malformed or duplicate content."""
        self.items = ContentLoader(self.content_dir).load()
        self.items_loaded = len(self.items)
        return self.items

    def build(self):
        """
        Main build process.

        Errors are not caught here: the output directory is only replaced once
        every page has rendered.
        """
        start_time = time.time()
        self.logger.debug(f"Starting site build of {self.project_dir}")

        self.load_content()
        if not self.items:
            self.logger.warning("No markdown files found to process.")

        self.index = build_index(self.items, self.config)
        self.items_published = len(self.index.published)
        self.drafts_skipped = self.items_loaded - self.items_published

        self.logger.info(f"Building listing pages ({len(self.index.listing_pages)} pages)")
        self.logger.info(f"Building taxonomy pages for {', '.join(self.index.taxonomies) or 'no taxonomies'}")
        self.files_written = self.renderer.render(self.index, self.config, self.output_dir)

        total_time = time.time() - start_time
        self.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        self.logger.info(f"Total content files loaded: {self.items_loaded}")
        self.logger.info(f"Total items published: {self.items_published}")
        self.logger.info(f"Total drafts skipped: {self.drafts_skipped}")
        self.logger.info(f"Total files written: {self.files_written}")
        return self.index
