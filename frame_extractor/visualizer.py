"""Debug visualization utilities for frame extraction."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import cv2
import numpy as np

if TYPE_CHECKING:
    from .models import FrameRect, HorizontalBounds, Roi, Spacer, VerticalBounds


def _to_bgr(img: np.ndarray) -> np.ndarray:
    """Return a BGR copy of a grayscale or color image."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    return img.copy()


class DebugVisualizer:
    """Saves debug images at each step of frame extraction."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        if self.output_dir.exists():
            # Backup existing debug dir before cleaning
            backup_dir = self.output_dir.with_suffix(".bak")
            if backup_dir.exists():
                shutil.rmtree(backup_dir)
            self.output_dir.rename(backup_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.step = 0

    def _save(self, name: str, img: np.ndarray):
        self.step += 1
        filename = f"{self.step:02d}_{name}.png"
        cv2.imwrite(str(self.output_dir / filename), img)

    def save_roi(self, img: np.ndarray, roi: Roi):
        """Save the working image with the ROI shaded outside."""
        vis = _to_bgr(img)
        overlay = vis.copy()
        overlay[: roi.y, :] = (0, 0, 128)
        overlay[roi.bottom :, :] = (0, 0, 128)
        cv2.addWeighted(overlay, 0.5, vis, 0.5, 0, vis)
        cv2.rectangle(vis, (roi.x, roi.y), (roi.right - 1, roi.bottom - 1), (0, 255, 255), 2)
        self._save("roi", vis)

    def save_edges(self, name: str, edges: np.ndarray):
        """Save a binary edge map as is."""
        self._save(name, edges)

    def save_sprocket_scan(self, gray_roi: np.ndarray, column: int, bounds: VerticalBounds):
        """Save the ROI with the scan column, edge rows and sprockets marked."""
        vis = _to_bgr(gray_roi)
        img_h, img_w = vis.shape[:2]
        cv2.line(vis, (column, 0), (column, img_h), (255, 255, 0), 1)

        for row in bounds.edge_rows:
            cv2.circle(vis, (column, row), 3, (0, 165, 255), -1)
        for sprocket in bounds.sprockets:
            cv2.rectangle(
                vis, (column - 10, sprocket.top), (column + 10, sprocket.bottom), (0, 0, 255), 2
            )

        cv2.line(vis, (0, bounds.top), (img_w, bounds.top), (0, 255, 0), 2)
        cv2.line(vis, (0, bounds.bottom), (img_w, bounds.bottom), (0, 255, 0), 2)
        self._save("sprocket_scan", vis)

    def save_contours(
        self,
        edges: np.ndarray,
        approximations: list[np.ndarray],
        bounds: HorizontalBounds,
    ):
        """Save the vertical edge map with polygon approximations and chosen bounds."""
        vis = _to_bgr(edges)
        img_h = vis.shape[0]
        cv2.drawContours(vis, approximations, -1, (0, 255, 255), 2)
        for approx in approximations:
            x, y = np.asarray(approx).reshape(-1, 2)[0]
            cv2.circle(vis, (int(x), int(y)), 5, (255, 0, 255), -1)
        cv2.line(vis, (bounds.left, 0), (bounds.left, img_h), (0, 255, 0), 2)
        cv2.line(vis, (bounds.right, 0), (bounds.right, img_h), (0, 0, 255), 2)
        self._save("contours", vis)

    def save_frame_rect(self, img: np.ndarray, rect: FrameRect):
        """Save the source image with the final frame rectangle."""
        vis = _to_bgr(img)
        cv2.rectangle(vis, (rect.x, rect.y), (rect.right - 1, rect.bottom - 1), (0, 255, 0), 3)
        cv2.putText(
            vis,
            f"{rect.width}x{rect.height} @ ({rect.x}, {rect.y})",
            (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.8,
            (0, 255, 0),
            2,
        )
        self._save("frame_rect", vis)

    def save_spacers(self, img: np.ndarray, strip: Roi, spacers: list[Spacer]):
        """Save the image with the calibration strip and matched spacers."""
        vis = _to_bgr(img)
        cv2.rectangle(vis, (strip.x, strip.y), (strip.right - 1, strip.bottom - 1), (255, 255, 0), 1)
        for i, spacer in enumerate(spacers):
            color = (0, 0, 255) if i == 0 else (0, 255, 0) if i == 1 else (128, 128, 128)
            cv2.rectangle(
                vis, (spacer.x, spacer.y), (spacer.x + spacer.width, spacer.bottom), color, 2
            )
            cv2.putText(
                vis,
                f"y={spacer.top}-{spacer.bottom} a={spacer.area}",
                (strip.right + 5, spacer.y + 12),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.5,
                color,
                1,
            )
        self._save("spacers", vis)

    def save_separator_rows(self, img: np.ndarray, strip: Roi, rows: list[int]):
        """Save strip overlay plus a row-position plot of separator edges."""
        vis = _to_bgr(img)
        for row in rows:
            cv2.line(vis, (strip.x, row), (strip.right, row), (0, 0, 255), 2)
        self._save("separator_rows", vis)

        import matplotlib.pyplot as plt
        import pandas as pd

        df = pd.DataFrame({"row": rows})
        df["gap"] = df["row"].diff()

        fig, axes = plt.subplots(1, 2, figsize=(10, 4))
        if rows:
            axes[0].eventplot(df["row"].tolist(), orientation="vertical", colors="red")
        axes[0].set_ylim(img.shape[0], 0)
        axes[0].set_ylabel("Row")
        axes[0].set_title(f"Separator edges ({len(rows)})")

        axes[1].bar(range(len(df)), df["gap"].fillna(0))
        axes[1].set_xlabel("Edge index")
        axes[1].set_ylabel("Rows since previous edge")
        axes[1].set_title("Edge spacing")

        fig.tight_layout()
        self.step += 1
        fig.savefig(self.output_dir / f"{self.step:02d}_separator_profile.png", dpi=100)
        plt.close(fig)
