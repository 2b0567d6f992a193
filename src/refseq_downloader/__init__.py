"""NCBI RefSeq GenBank Downloader.

Retrieves GenBank flat files for RefSeq transcript (NM_) and RefSeqGene (NG_)
records from NCBI, starting from gene symbols or accessions.
"""

__version__ = "1.0.0"
__author__ = "Austin P. Morrissey"
