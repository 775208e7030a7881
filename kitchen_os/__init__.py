"""
Kitchen OS: KOT routing and kitchen display coordination
"""
