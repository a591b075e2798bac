"""Protocol layer: packet framing, numeric encodings, command builders and media upload."""

from .framing import TIGA, ZOOM65, PacketFormat, build_packet, parse_packet
from .upload import Chunk, split_chunks, upload
