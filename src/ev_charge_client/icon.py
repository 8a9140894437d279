"""Application icon helpers."""
from __future__ import annotations


def create_icon(size: int = 64, color: str = "#F56B3F"):  # pragma: no cover - requires PyQt at runtime
    """Create the lightning-bolt :class:`~PyQt5.QtGui.QIcon` shown in the title bar.

    PyQt5 is imported lazily so the rest of the package stays importable
    without a graphical backend.
    """

    try:
        from PyQt5.QtCore import QPointF, Qt
        from PyQt5.QtGui import QBrush, QColor, QIcon, QPainter, QPixmap, QPolygonF
    except Exception as exc:  # pragma: no cover - depends on environment
        raise RuntimeError("PyQt5 is required to generate the application icon") from exc

    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(Qt.NoPen)
    painter.setBrush(QBrush(QColor(color)))
    painter.drawEllipse(2, 2, size - 4, size - 4)

    unit = size / 16.0
    bolt = QPolygonF(
        [
            QPointF(9 * unit, 2.5 * unit),
            QPointF(4 * unit, 9 * unit),
            QPointF(7.5 * unit, 9 * unit),
            QPointF(6.5 * unit, 13.5 * unit),
            QPointF(12 * unit, 7 * unit),
            QPointF(8.5 * unit, 7 * unit),
        ]
    )
    painter.setBrush(QBrush(Qt.white))
    painter.drawPolygon(bolt)
    painter.end()

    return QIcon(pixmap)


__all__ = ["create_icon"]
