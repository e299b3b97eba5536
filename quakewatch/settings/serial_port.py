from pydantic import BaseModel, Field


class SerialSettings(BaseModel):
    """
    Pydantic model for the serial link to the sensor board. The same port is used
    to read magnitude lines and to send back the single-character alert commands.
    """
    port: str = "/dev/ttyUSB0"
    baudrate: int = Field(default=9600, gt=0)
    timeout: float = Field(default=0.1, gt=0)

    alert_command: str = Field(default="A", min_length=1, max_length=1)
    normal_command: str = Field(default="N", min_length=1, max_length=1)
