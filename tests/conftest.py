"""
SIC/XE Assembler - Test Configuration
=====================================

pytest fixtures shared by the assembler tests.

It provides:
- The three-section COPY/RDREC/WRREC program with its expected object
  program, used as the end-to-end reference
"""

import pytest


# ═══════════════════════════════════════════════════════════════════════════════
# REFERENCE PROGRAM
# ═══════════════════════════════════════════════════════════════════════════════

COPY_SOURCE = "\n".join([
    ". COPY FILE FROM INPUT TO OUTPUT",
    "COPY\tSTART\t0",
    "\tEXTDEF\tBUFFER,BUFEND,LENGTH",
    "\tEXTREF\tRDREC,WRREC",
    "FIRST\tSTL\tRETADR\tsave return address",
    "CLOOP\t+JSUB\tRDREC\tread input record",
    "\tLDA\tLENGTH\ttest for EOF (length = 0)",
    "\tCOMP\t#0",
    "\tJEQ\tENDFIL\texit if EOF found",
    "\t+JSUB\tWRREC\twrite output record",
    "\tJ\tCLOOP\tloop",
    "ENDFIL\tLDA\t=C'EOF'\tinsert end of file marker",
    "\tSTA\tBUFFER",
    "\tLDA\t#3\tset length = 3",
    "\tSTA\tLENGTH",
    "\t+JSUB\tWRREC\twrite EOF",
    "\tJ\t@RETADR\treturn to caller",
    "RETADR\tRESW\t1",
    "LENGTH\tRESW\t1\tlength of record",
    "\tLTORG",
    "BUFFER\tRESB\t4096\t4096-byte buffer area",
    "BUFEND\tEQU\t*",
    "MAXLEN\tEQU\tBUFEND-BUFFER",
    ".",
    ". SUBROUTINE TO READ RECORD INTO BUFFER",
    ".",
    "RDREC\tCSECT",
    "\tEXTREF\tBUFFER,LENGTH,BUFEND",
    "\tCLEAR\tX\tclear loop counter",
    "\tCLEAR\tA\tclear A to zero",
    "\tCLEAR\tS\tclear S to zero",
    "\tLDT\tMAXLEN",
    "RLOOP\tTD\tINPUT\ttest input device",
    "\tJEQ\tRLOOP\tloop until ready",
    "\tRD\tINPUT\tread character into register A",
    "\tCOMPR\tA,S\ttest for end of record (X'00')",
    "\tJEQ\tEXIT\texit loop if EOR",
    "\t+STCH\tBUFFER,X\tstore character in buffer",
    "\tTIXR\tT\tloop unless max length",
    "\tJLT\tRLOOP\thas been reached",
    "EXIT\t+STX\tLENGTH\tsave record length",
    "\tRSUB\t\treturn to caller",
    "INPUT\tBYTE\tX'F1'\tcode for input device",
    "MAXLEN\tWORD\tBUFEND-BUFFER",
    ".",
    ". SUBROUTINE TO WRITE RECORD FROM BUFFER",
    ".",
    "WRREC\tCSECT",
    "\tEXTREF\tLENGTH,BUFFER",
    "\tCLEAR\tX\tclear loop counter",
    "\t+LDT\tLENGTH",
    "WLOOP\tTD\t=X'05'\ttest output device",
    "\tJEQ\tWLOOP\tloop until ready",
    "\t+LDCH\tBUFFER,X\tget character from buffer",
    "\tWD\t=X'05'\twrite character",
    "\tTIXR\tT\tloop until all characters",
    "\tJLT\tWLOOP\thave been written",
    "\tRSUB\t\treturn to caller",
    "\tEND\tFIRST",
]) + "\n"

COPY_OBJECT = (
    "HCOPY  000000001033\n"
    "DBUFFER000033BUFEND001033LENGTH00002D\n"
    "RRDREC WRREC \n"
    "T0000001D1720274B1000000320232900003320074B1000003F2FEC0320160F2016\n"
    "T00001D0D0100030F200A4B1000003E2000\n"
    "T00003003454F46\n"
    "M00000405+RDREC\n"
    "M00001105+WRREC\n"
    "M00002405+WRREC\n"
    "E000000\n"
    "\n"
)

RDREC_OBJECT = (
    "HRDREC 00000000002B\n"
    "RBUFFERLENGTHBUFEND\n"
    "T0000001DB410B400B44077201FE3201B332FFADB2015A00433200957900000B850\n"
    "T00001D0E3B2FE9131000004F0000F1000000\n"
    "M00001805+BUFFER\n"
    "M00002105+LENGTH\n"
    "M00002806+BUFEND\n"
    "M00002806-BUFFER\n"
    "E\n"
    "\n"
)

WRREC_OBJECT = (
    "HWRREC 00000000001C\n"
    "RLENGTHBUFFER\n"
    "T0000001CB41077100000E32012332FFA53900000DF2008B8503B2FEE4F000005\n"
    "M00000305+LENGTH\n"
    "M00000D05+BUFFER\n"
    "E\n"
    "\n"
)


@pytest.fixture
def copy_source() -> str:
    """Fixture: three-section source program (COPY, RDREC, WRREC)."""
    return COPY_SOURCE


@pytest.fixture
def copy_object() -> str:
    """Fixture: the object program expected for copy_source."""
    return COPY_OBJECT + RDREC_OBJECT + WRREC_OBJECT

