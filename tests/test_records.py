import unittest

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader

from atmfjstc.lib.pac_extractor.records import read_partition_record, iter_partition_records, \
    PARTITION_RECORD_MIN_SIZE
from atmfjstc.lib.pac_extractor.errors import TruncatedInputError, MalformedRecordError

from pac_samples import make_record, RECORD_SIZE


class ReadPartitionRecordTest(unittest.TestCase):
    def test_min_size(self):
        self.assertEqual(PARTITION_RECORD_MIN_SIZE, 1568)

    def test_fields(self):
        data = b'\xAA' * 16 + make_record('boot', 'boot.img', 12345, 0x10000)

        record, next_offset = read_partition_record(BinaryReader(data, big_endian=False), 16)

        self.assertEqual(record.record_offset, 16)
        self.assertEqual(record.record_length, RECORD_SIZE)
        self.assertEqual(record.partition_name, 'boot')
        self.assertEqual(record.file_name, 'boot.img')
        self.assertEqual(record.partition_size, 12345)
        self.assertEqual(record.payload_offset, 0x10000)
        self.assertEqual(record.raw_extra, b'')
        self.assertEqual(record.payload_end, 0x10000 + 12345)
        self.assertEqual(next_offset, 16 + RECORD_SIZE)
        self.assertEqual(record.next_record_offset, next_offset)

    def test_second_record_follows_declared_length(self):
        for extra_len in [0, 1, 2, 100, 1012]:
            extra = bytes(range(256)) * 4
            extra = extra[:extra_len]

            data = make_record('uboot', 'u-boot.bin', 10, 0, extra=extra) + make_record('system', 'system.img', 20, 0)
            reader = BinaryReader(data, big_endian=False)

            first, next_offset = read_partition_record(reader, 0)
            self.assertEqual(next_offset, RECORD_SIZE + extra_len)
            self.assertEqual(first.raw_extra, extra)

            second, _ = read_partition_record(reader, next_offset)
            self.assertEqual(second.record_offset, RECORD_SIZE + extra_len)
            self.assertEqual(second.partition_name, 'system')
            self.assertEqual(second.partition_size, 20)

    def test_missing_length_prefix(self):
        data = make_record('boot', 'boot.img', 1, 0)

        with self.assertRaises(TruncatedInputError):
            read_partition_record(BinaryReader(data, big_endian=False), len(data))

        with self.assertRaises(TruncatedInputError):
            read_partition_record(BinaryReader(data[:2], big_endian=False), 0)

    def test_length_past_end(self):
        data = make_record('boot', 'boot.img', 1, 0, record_length=RECORD_SIZE + 1)

        with self.assertRaises(TruncatedInputError) as cm:
            read_partition_record(BinaryReader(data, big_endian=False), 0)

        self.assertEqual(cm.exception.position, 0)

    def test_huge_length(self):
        data = make_record('boot', 'boot.img', 1, 0, record_length=0xFFFFFFFF)

        with self.assertRaises(TruncatedInputError):
            read_partition_record(BinaryReader(data, big_endian=False), 0)

    def test_length_below_fixed_layout(self):
        for bad_length in [0, 4, RECORD_SIZE - 1]:
            data = make_record('boot', 'boot.img', 1, 0, record_length=bad_length)

            with self.assertRaises(MalformedRecordError) as cm:
                read_partition_record(BinaryReader(data, big_endian=False), 0)

            self.assertEqual(cm.exception.record_length, bad_length)


class IterPartitionRecordsTest(unittest.TestCase):
    def test_reads_count_records(self):
        data = b''.join(make_record(f'part{i}', f'part{i}.bin', i, 0) for i in range(4))

        records = list(iter_partition_records(BinaryReader(data, big_endian=False), 0, 3))

        self.assertEqual([record.partition_name for record in records], ['part0', 'part1', 'part2'])
        self.assertEqual([record.record_offset for record in records], [0, RECORD_SIZE, 2 * RECORD_SIZE])

    def test_zero_count(self):
        self.assertEqual(list(iter_partition_records(BinaryReader(b'', big_endian=False), 0, 0)), [])

    def test_too_few_records(self):
        data = make_record('boot', 'boot.img', 1, 0)

        with self.assertRaises(TruncatedInputError):
            list(iter_partition_records(BinaryReader(data, big_endian=False), 0, 2))
