from typing import Optional
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .detector import DetectorSettings
from .serial_port import SerialSettings


DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent.parent / "data/config.yml"


class Settings(BaseModel):
    """
    Pydantic model for application settings. This class defines the structure of the
    configuration, provides methods to load and save settings from/to a YAML file,
    and includes a method to update existing settings with new values.
    """
    station: str
    log_level: str = "INFO"

    serial: SerialSettings
    detector: DetectorSettings

    buzzer_pin: int = 17
    websocket_host: str = "0.0.0.0"
    websocket_port: int = Field(default=8765, gt=0, lt=65536)
    broadcast_every: int = Field(default=1, gt=0)

    def export_settings(self, path: Optional[Path] = None):
        """
        Export the current settings to a YAML file. This method serializes the settings
        to a YAML format and saves it to the given path, or the default location.
        """
        settings_file_path = path or DEFAULT_SETTINGS_PATH

        with open(settings_file_path, "w", encoding="UTF-8") as settings_file:
            yaml.dump(self.model_dump(mode='json'), settings_file, indent=2)

    def update_from(self, new: "Settings") -> None:
        """
        Update the current settings with values from another Settings instance.
        This method iterates over all fields defined in the Settings model and updates
        the current instance's attributes with the corresponding values from the new instance.
        """
        for field in Settings.model_fields:
            setattr(self, field, getattr(new, field))

    @classmethod
    def load_settings(cls, path: Optional[Path] = None):
        """
        Load settings from a YAML file. If the file does not exist, it creates a new one
        with default settings and returns them. Otherwise the YAML content is read
        and validated into a Settings instance.
        """
        base_path = path or DEFAULT_SETTINGS_PATH

        # If YAML config does not exist
        if not base_path.exists():
            base_path.parent.mkdir(parents=True, exist_ok=True)
            # Otherwise create default config
            settings = cls.get_default_settings()

            with open(base_path, "w", encoding="UTF-8") as yml_file:
                yaml.dump(settings.model_dump(mode="json"), yml_file, indent=2)

            return settings

        # Load existing YAML config
        with open(base_path, "r", encoding="UTF-8") as yml_file:
            return cls(**yaml.safe_load(yml_file))

    @classmethod
    def get_default_settings(cls):
        """
        Generate a default Settings instance: a USB serial sensor at 9600 baud and
        the stock detector tuning (100 sample window, 5 calibration samples, 0.5g).
        """
        data = {
            "station": "QW01",
            "serial": {
                "port": "/dev/ttyUSB0",
                "baudrate": 9600,
            },
            "detector": {},
        }

        return cls(**data)
