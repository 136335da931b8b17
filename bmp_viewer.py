# NOTE: For displaying the parsed image in a GUI,
#       please download PyQt5.
#
# Installation (in terminal):
#   pip install PyQt5
import logging
import sys

from PyQt5.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QPushButton, QLabel,
    QFileDialog, QTextEdit, QSlider, QHBoxLayout, QCheckBox
)
from PyQt5.QtGui import QPixmap, QImage, qRgb
from PyQt5.QtCore import Qt

from bmp_errors import BMPError
from bmp_file import load_bmp, save_bmp

logger = logging.getLogger(__name__)


def to_qimage(bitmap, brightness=1.0, r_enabled=True, g_enabled=True, b_enabled=True, scale=1.0):
    """Render a BitmapFile into a QImage, nearest-neighbour scaled."""
    rows = bitmap.pixel_rows()
    new_w = int(bitmap.width * scale)
    new_h = int(bitmap.height * scale)

    image = QImage(new_w, new_h, QImage.Format_RGB32)

    # Loop through each pixel and apply brightness and RGB toggle
    for y in range(new_h):
        src_row = rows[int(y / scale)]
        for x in range(new_w):
            R, G, B = src_row[int(x / scale)]

            if not r_enabled:
                R = 0
            if not g_enabled:
                G = 0
            if not b_enabled:
                B = 0

            R = min(255, int(R * brightness))
            G = min(255, int(G * brightness))
            B = min(255, int(B * brightness))

            image.setPixel(x, y, qRgb(R, G, B))

    return image


class BMPViewer(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("BMP Viewer")
        self.resize(700, 500)

        self.bitmap = None

        # RGB channels toggle and display settings
        self.r_enabled = True
        self.g_enabled = True
        self.b_enabled = True
        self.brightness = 1.0
        self.scale = 1.0

        layout = QVBoxLayout()

        top_layout = QHBoxLayout()

        self.open_button = QPushButton("Open BMP File")
        self.open_button.setFixedSize(150, 50)
        self.open_button.clicked.connect(self.open_file)
        top_layout.addWidget(self.open_button)

        self.save_button = QPushButton("Save BMP File")
        self.save_button.setFixedSize(150, 50)
        self.save_button.clicked.connect(self.save_file)
        top_layout.addWidget(self.save_button)

        top_layout.addStretch()

        # Checkboxes to enable/disable R, G, B channels
        self.r_button = QCheckBox("R")
        self.g_button = QCheckBox("G")
        self.b_button = QCheckBox("B")

        self.r_button.clicked.connect(self.toggle_channels)
        self.g_button.clicked.connect(self.toggle_channels)
        self.b_button.clicked.connect(self.toggle_channels)

        for btn in (self.r_button, self.g_button, self.b_button):
            btn.setChecked(True)
            btn.setFixedSize(30, 30)
            top_layout.addWidget(btn)

        layout.addLayout(top_layout)

        self.image_label = QLabel("No Image Loaded")
        self.image_label.setStyleSheet("border: 1px solid black; background: white;")
        self.image_label.setAlignment(Qt.AlignCenter)
        self.image_label.setFixedSize(700, 400)
        layout.addWidget(self.image_label)

        # Text box to display BMP metadata
        self.metadata_box = QTextEdit("No Metadata Loaded")
        self.metadata_box.setMinimumHeight(150)
        self.metadata_box.setReadOnly(True)
        layout.addWidget(self.metadata_box)

        self.brightness_slider = QSlider(Qt.Horizontal)
        self.brightness_slider.setRange(0, 100)
        self.brightness_slider.setValue(100)
        self.brightness_slider.valueChanged.connect(self.update_image)
        layout.addWidget(QLabel("Brightness"))
        layout.addWidget(self.brightness_slider)

        self.scale_slider = QSlider(Qt.Horizontal)
        self.scale_slider.setRange(1, 100)
        self.scale_slider.setValue(100)
        self.scale_slider.valueChanged.connect(self.update_image)
        layout.addWidget(QLabel("Scale"))
        layout.addWidget(self.scale_slider)

        self.setLayout(layout)

    def open_file(self):
        filepath, _ = QFileDialog.getOpenFileName(self, "Open BMP File", "", "BMP Files (*.bmp)")
        if not filepath:
            return

        try:
            self.bitmap = load_bmp(filepath)
        except BMPError as e:
            logger.exception("Failed to open %s", filepath)
            self.bitmap = None
            self.image_label.setText("No Image Loaded")
            self.metadata_box.setText(f"Failed to open {filepath}: {e}")
            return

        meta_text = ""
        for k, v in self.bitmap.metadata.items():
            meta_text += f"{k}: {v}\n"
        self.metadata_box.setText(meta_text)

        self.update_image()

    def save_file(self):
        if self.bitmap is None:
            return

        output_filepath, _ = QFileDialog.getSaveFileName(self, "Save BMP File", "", "BMP Files (*.bmp)")
        if not output_filepath:
            return

        try:
            save_bmp(output_filepath, self.bitmap)
        except BMPError as e:
            logger.exception("Failed to save %s", output_filepath)
            self.metadata_box.append(f"Failed to save {output_filepath}: {e}")
            return

        self.metadata_box.append(f"Saved to {output_filepath} ({self.bitmap.file_header.bfSize} bytes)")

    def update_image(self):
        if self.bitmap is None:
            return

        self.brightness = self.brightness_slider.value() / 100.0
        self.scale = self.scale_slider.value() / 100.0

        image = to_qimage(self.bitmap, self.brightness,
                          self.r_enabled, self.g_enabled, self.b_enabled, self.scale)
        self.image_label.setPixmap(QPixmap.fromImage(image))

    def toggle_channels(self):
        self.r_enabled = self.r_button.isChecked()
        self.g_enabled = self.g_button.isChecked()
        self.b_enabled = self.b_button.isChecked()
        self.update_image()


def main():
    logging.basicConfig(level=logging.INFO)
    app = QApplication(sys.argv)
    viewer = BMPViewer()
    viewer.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
