# voicegate

`voicegate` manages voice connections for chat bots at the gateway level and
provides audio input sources for them.

On the gateway side it tracks how far each guild's voice connection has got. It
sends voice state updates over a shard and puts together the `ConnectionInfo`
(endpoint, session id, token) that a voice driver or an external audio server
needs. On the media side it reads raw PCM, float PCM and DCA framed Opus
streams. It wraps `ffmpeg` and `youtube-dl` child processes as readers, and it
can cache a source in memory so that it can be shared and seeked.

## Installation

```
pip install voicegate
```

The sources in `voicegate.media.ffmpeg` and `voicegate.media.ytdl` start the
`ffmpeg`, `ffprobe` and `youtube-dl` programs. Those programs must be on your
`PATH` if you use these sources.

## Gateway connections

```python
from voicegate.ids import ChannelId, GuildId
from voicegate.manager import VoiceManager
from voicegate.shards import Sharder


def send_to_gateway(message):
    ...  # put the JSON message on this shard's outgoing queue


manager = VoiceManager(Sharder(), gateway_timeout=10.0)
manager.initialise_client_data(shard_count=1, user_id=1234)
manager.register_shard(0, send_to_gateway)

# Elsewhere, in a separate task, feed the gateway's voice events in:
#   await manager.state_update(guild_id, user_id, session_id, channel_id)
#   await manager.server_update(guild_id, endpoint, token)

call, info = await manager.join_gateway(GuildId(42), ChannelId(7))
print(info.endpoint, info.session_id)
```

`VoiceManager` keeps one `Call` per guild. Use `get`, `get_or_insert`, `leave`
and `remove` to reach or drop calls. `shard_id(guild_id, shard_count)` picks the
shard that carries a guild's traffic. `join_gateway` only returns once both a
state update and a server update for the guild have arrived, so those events
must be processed on another task.

Messages sent while a shard has no registered sender are buffered. They are
flushed when a sender is registered with `register_shard`. A call made with
`Call.standalone(guild_id, user_id)` has no shard. It records mute, deafen and
channel state locally, and any attempt to send an update raises
`NoSenderError`.

Failures are raised as subclasses of `voicegate.join.JoinError`:
`TimedOutError`, `DroppedError`, `NoSenderError` and `NoCallError`.

## Audio inputs

```python
from datetime import timedelta

from voicegate.media.cached import Memory
from voicegate.media.ffmpeg import ffmpeg

source = await ffmpeg("song.mp3")
cached = Memory(source, None)
track = cached.into_input()
reached = track.seek_time(timedelta(seconds=30))
pcm = track.read(3840)
```

`Input` (in `voicegate.media.source`) reads little-endian float32 PCM at 48kHz.
The input may hold float PCM, 16-bit PCM or Opus:

- `mix(buffer, volume)` adds one 20ms frame into a stereo float buffer.
- `seek` and `seek_time` move within the stream.
- For Opus inputs, `read_opus_frame` hands whole frames on without decoding.

Other sources:

- `voicegate.media.dca.dca(path)` opens DCA1 files.
- `voicegate.media.ytdl.ytdl(uri)` and `ytdl_search(name)` stream online media.
- `ytdl_metadata(uri)` fetches only the metadata of online media.
- `voicegate.media.ffmpeg.is_stereo(path)` probes a file with `ffprobe`.

`Metadata` holds whatever `ffprobe`, `youtube-dl` or a DCA header report about a
source.

`voicegate.media.cached` also provides `CacheConfig`, `LengthHint`,
`default_config`, `raw_cost_per_sec` and `compressed_cost_per_sec`, which size
the cache's reads. `Memory.new_handle()` gives another view of the same cached
data, starting from the beginning.

## What it does not do

- It does not include a voice driver. Nothing here opens the voice websocket or
  sends audio over UDP. You get the `ConnectionInfo` and hand it on yourself.
- It contains no Opus codec. To decode Opus, set `Input.decoder` to an object
  with `decode(packet)` and `reset()`. Passthrough of Opus frames works without
  one.
- It has no Opus-compressed cache. `Memory` stores bytes exactly as its source
  yields them.
- It has no sources that restart themselves to seek backwards.
- It provides no command-line program.

## Tests

```
pip install -e ".[test]"
pytest
```