# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/network/cni.py
from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from nodeconfig.errors import CNIConfigError

log = logging.getLogger("nodeconfig")

DEFAULT_TEMPLATE = Path(__file__).resolve().parents[1] / "templates" / "cni.conf.j2"


class CNIConfigMaterializer:
    """
    Renders the CNI config template for one node into a temp file.
    The template sees ``host_subnet`` and ``service_network_cidr``.
    """

    def __init__(self, template_path: Optional[Union[str, Path]] = None, tmp_dir: Optional[str] = None):
        self.template_path = Path(template_path) if template_path else DEFAULT_TEMPLATE
        self.tmp_dir = tmp_dir
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_path.parent)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, service_cidr: str, host_subnet: str) -> str:
        try:
            tmpl = self.env.get_template(self.template_path.name)
            return tmpl.render(host_subnet=host_subnet, service_network_cidr=service_cidr)
        except (TemplateError, OSError) as e:
            raise CNIConfigError(f"error rendering CNI config template {self.template_path}: {e}") from e

    def populate(self, service_cidr: str, host_subnet: str) -> Path:
        """Render and write to a fresh temp file; returns its path."""
        content = self.render(service_cidr, host_subnet)
        try:
            fd, name = tempfile.mkstemp(prefix="cni-", suffix=".conf", dir=self.tmp_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise CNIConfigError(f"error writing CNI config file: {e}") from e

        log.debug("[cni] wrote %s (host_subnet=%s service_cidr=%s)", name, host_subnet, service_cidr)
        return Path(name)

    def cleanup(self, path: Union[str, Path]) -> None:
        """Best effort: a failed delete is logged, never raised."""
        try:
            os.remove(path)
        except OSError as e:
            log.error("[cni] error deleting temp CNI config %s: %s", path, e)

    @contextmanager
    def materialized(self, service_cidr: str, host_subnet: str) -> Iterator[Path]:
        path = self.populate(service_cidr, host_subnet)
        try:
            yield path
        finally:
            self.cleanup(path)
