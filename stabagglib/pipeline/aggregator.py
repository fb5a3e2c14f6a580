#!/usr/bin/env python3

# local repo modules
from stabagglib.core.errors import ResourceError

#============================================

class TransformAggregator():
	"""
	Append-only concatenation of segment transform sequences.

	Records keep their order inside a segment and segments keep the order
	they were appended in. Nothing is ever sorted or deduplicated.
	"""
	def __init__(self):
		self._records = []
		self._segments = []

	#============================
	def append(self, name: str, records: list) -> None:
		offset = len(self._records)
		try:
			self._records.extend(records)
		except MemoryError as exc:
			# drop the partial copy so the offsets stay consistent
			del self._records[offset:]
			raise ResourceError(f"out of memory appending segment {name}") from exc
		self._segments.append({
			"name": name,
			"offset": offset,
			"length": len(self._records) - offset,
		})

	#============================
	def __len__(self) -> int:
		return len(self._records)

	#============================
	@property
	def records(self) -> list:
		return list(self._records)

	#============================
	@property
	def segments(self) -> list:
		return [dict(item) for item in self._segments]

	#============================
	def find_segment(self, name: str) -> dict | None:
		for item in self._segments:
			if item["name"] == name:
				return dict(item)
		return None

	#============================
	def slice(self, offset: int, length: int) -> list:
		return self._records[offset:offset + length]

	#============================
	def segment_slice(self, name: str) -> list | None:
		item = self.find_segment(name)
		if item is None:
			return None
		return self.slice(item["offset"], item["length"])
