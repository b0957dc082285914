"""Audio inputs: readers, codecs, containers, metadata, process-backed and cached sources."""